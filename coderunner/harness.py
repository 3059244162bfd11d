"""
Builds the test harness that wraps a user program.

The composite program is the user source verbatim followed by a fixed driver.
Test cases never appear in the program text: they travel in a JSON side file
(``HARNESS_DATA_NAME``) that the driver loads at startup. The driver writes the
per-test records to stdout between ``RESULTS_START`` and ``RESULTS_END`` lines.
"""

import json
from dataclasses import dataclass
from typing import Sequence

from .schemas import TestCase

# Reserved input expression: run the whole program and compare what it prints
PRINT_OUTPUT_SENTINEL = 'print_output'

RESULTS_START = 'TEST_RESULTS_START'
RESULTS_END = 'TEST_RESULTS_END'

HARNESS_DATA_NAME = 'harness_data.json'


# Everything the driver uses is bound locally so module-level names in the
# user program (``str = ...``, ``def print(...)``) cannot break it.
_DRIVER = f'''

# --- test harness ---
def _harness_main(bindings):
    from builtins import Exception, SystemExit, compile, dict, eval, exec, list, open, repr, str
    import contextlib
    import io
    import json
    import os
    import sys

    here = os.path.dirname(os.path.abspath(__file__))
    with open(os.path.join(here, {HARNESS_DATA_NAME!r}), encoding='utf-8') as fh:
        data = json.load(fh)

    namespace = dict(bindings)
    namespace.pop('_harness_main', None)
    program = compile(data['source'], __file__, 'exec')

    def capture():
        buffer = io.StringIO()
        scope = dict(__name__='__main__', __file__=__file__)
        with contextlib.redirect_stdout(buffer):
            try:
                exec(program, scope)
            except SystemExit:
                pass
        return buffer.getvalue().strip()

    def evaluate(expression):
        scope = dict(namespace)
        scope['__builtins__'] = dict()
        return str(eval(expression, scope)).strip()

    results = list()
    for case in data['cases']:
        record = dict(
            input_expression=case['input_expression'],
            expected_output=case['expected_output'],
            description=case['description'],
            error=None,
        )
        try:
            if case['input_expression'] == {PRINT_OUTPUT_SENTINEL!r}:
                actual = capture()
            else:
                actual = evaluate(case['input_expression'])
        except SystemExit as exc:
            record.update(actual_output='Error', passed=False, error='SystemExit(' + repr(exc.code) + ')')
        except Exception as exc:
            record.update(actual_output='Error', passed=False, error=str(exc))
        else:
            record.update(actual_output=actual, passed=actual == case['expected_output'].strip())
        results.append(record)

    sys.stdout.flush()
    sys.stderr.flush()
    out = sys.__stdout__
    # the program's output may not end in a newline
    out.write('\\n' + {RESULTS_START!r} + '\\n')
    out.write(json.dumps(results, indent=2) + '\\n')
    out.write({RESULTS_END!r} + '\\n')
    out.flush()


_harness_main(globals())
'''


@dataclass(frozen=True)
class Harness:
    source: str
    data: str


def build_harness(source: str, test_cases: Sequence[TestCase]) -> Harness:
    """Wrap ``source`` with a driver that evaluates ``test_cases`` in order.

    The returned ``data`` must be staged as ``HARNESS_DATA_NAME`` in the same
    directory as the program.
    """
    cases = [
        {
            'input_expression': case.input_expression,
            'expected_output': case.expected_output,
            'description': case.description,
        }
        for case in test_cases
    ]
    data = json.dumps({'source': source, 'cases': cases})
    if not source.endswith('\n'):
        source += '\n'
    return Harness(source=source + _DRIVER, data=data)
