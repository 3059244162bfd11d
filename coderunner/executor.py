import logging
from typing import Optional

from . import config
from .docker_runner import SandboxSetupError, run_source
from .harness import HARNESS_DATA_NAME, build_harness
from .results import parse_results
from .schemas import ExecutionRequest, ExecutionResponse

logger = logging.getLogger(__name__)


def execute(request: ExecutionRequest, timeout: Optional[float] = None) -> ExecutionResponse:
    """Run one request in a fresh sandbox, wrapping it in the test harness in test mode."""
    if timeout is None:
        timeout = config.RUN_TIMEOUT_SECONDS
    wrap = request.mode == 'test' and len(request.test_cases) > 0
    logger.info('executing mode=%s tests=%d backend=%s', request.mode, len(request.test_cases), config.SANDBOX_BACKEND)

    try:
        if wrap:
            harness = build_harness(request.source_code, request.test_cases)
            result = run_source(harness.source, timeout, files={HARNESS_DATA_NAME: harness.data})
        else:
            result = run_source(request.source_code, timeout)
    except SandboxSetupError as e:
        logger.warning('sandbox setup failed: %s', e)
        return ExecutionResponse(success=False, raw_output=f'Server Error: {e}')

    output = result['output']
    if not wrap:
        return ExecutionResponse(success=True, raw_output=output.strip())

    test_results = parse_results(output)
    summary = None
    if test_results:
        passed = sum(1 for r in test_results if r.passed)
        summary = f'{passed}/{len(test_results)} passed'
        logger.info('tests finished: %s', summary)
    else:
        logger.warning('no test results parsed for %d test cases (exit_code=%s, timed_out=%s)',
                       len(request.test_cases), result['exit_code'], result['timed_out'])

    return ExecutionResponse(
        success=True,
        raw_output=output.strip(),
        test_results=test_results,
        summary=summary,
    )
