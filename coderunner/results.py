import logging
from typing import List

from pydantic import TypeAdapter, ValidationError

from .harness import RESULTS_END, RESULTS_START
from .schemas import TestResult

logger = logging.getLogger(__name__)

_RESULTS = TypeAdapter(List[TestResult])


def _last_marker(lines: List[str], marker: str) -> int:
    for idx in range(len(lines) - 1, -1, -1):
        if lines[idx].strip() == marker:
            return idx
    return -1


def parse_results(raw_output: str) -> List[TestResult]:
    """
    Extract the test records the harness printed between its marker lines.

    The harness writes its payload last, so the last end marker and the last
    start marker before it are used; earlier marker lines printed by the user
    program are ignored. Returns an empty list when the payload is missing or
    unreadable; never raises.
    """
    lines = raw_output.splitlines()
    end = _last_marker(lines, RESULTS_END)
    if end < 0:
        logger.warning('result payload missing: no %s line in output', RESULTS_END)
        return []
    start = _last_marker(lines[:end], RESULTS_START)
    if start < 0:
        logger.warning('result payload missing: no %s line before %s', RESULTS_START, RESULTS_END)
        return []

    payload = '\n'.join(lines[start + 1:end])
    try:
        return _RESULTS.validate_json(payload)
    except ValidationError as e:
        logger.warning('result payload unreadable: %s', e)
        return []
