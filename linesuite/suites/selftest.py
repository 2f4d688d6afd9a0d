"""Self-test for linesuite: tests that exercise the harness with its own data file.

Run with `linesuite selftest`. The data lives next to this module in
selftest.txt. Some cases fail on purpose (see testTestResult); the
transcript says which failures to expect.

Test case formats:
  basicRead        <int first> <int second>        equal numbers; aborts everything otherwise
  testTestName     <quoted name>                   must equal the test's own name
  testTestCaseNum  <int number>                    must equal the case number within its block
  testTestResult   <quoted result> <bool applied>  returns the named result
  stringPulling    <int selector> <quoted text>    must equal STRINGS[selector]
  payloadLines     <int count>                     followed by `count` lines reading "payload"
"""

from linesuite.core.errors import CaseDataError
from linesuite.core.types import TestDefinition, TestResult

STRINGS = [
    'No escape characters.',
    'Escaped symbols:  " \\',
    "Embedded 'single' quotes",
    'Single-quoted "double" quotes',
]

basic_read = TestDefinition(name='basicRead', help='Read two equal integers from each case.')
test_test_name = TestDefinition(name='testTestName', help='Case text names the test it belongs to.')
test_test_case_num = TestDefinition(name='testTestCaseNum', help='Case numbers restart at 1 in every block.')
test_test_result = TestDefinition(name='testTestResult', help='Return each result code on request.')
string_pulling = TestDefinition(name='stringPulling', help='Quoted strings survive case parsing.')
payload_lines = TestDefinition(name='payloadLines', help='Read extra payload lines after a case.')


@basic_read.method
def _basic_read(case, lines, reporter):
    cur = case.cursor()
    first, second = cur.take_int(), cur.take_int()
    if first == second:
        return TestResult.PASS
    reporter.log(f'  {first} != {second}')
    return TestResult.ABORT_ALL_TESTS


@test_test_name.method
def _test_test_name(case, lines, reporter):
    name = case.cursor().take_quoted()
    if name != test_test_name.name:
        reporter.log(f'  Expected "{test_test_name.name}" but got "{name}".')
        return TestResult.FAIL
    return TestResult.PASS


@test_test_case_num.method
def _test_test_case_num(case, lines, reporter):
    number = case.cursor().take_int()
    if number != case.number:
        reporter.log(f'  Expected {case.number}, but got {number}.')
        return TestResult.FAIL
    return TestResult.PASS


@test_test_result.method
def _test_test_result(case, lines, reporter):
    cur = case.cursor()
    result = TestResult.parse(cur.take_quoted())
    if not cur.take_bool():
        reporter.log(f"  Something went wrong -- test case {case.number} shouldn't have been applied.")
        return TestResult.FAIL
    expectations = {
        TestResult.PASS: 'should pass...',
        TestResult.FAIL: 'should fail...',
        TestResult.ABORT_THIS_TEST: 'should fail and abort this test...',
        TestResult.ABORT_ALL_TESTS: 'should fail and abort all testing...',
    }
    reporter.log(f'  Test case {case.number} {expectations[result]}')
    return result


@string_pulling.method
def _string_pulling(case, lines, reporter):
    cur = case.cursor()
    selector = cur.take_int()
    text = cur.take_quoted()
    if not 0 <= selector < len(STRINGS):
        raise CaseDataError(f'string selector {selector} out of range')
    if text == STRINGS[selector]:
        return TestResult.PASS
    reporter.log(f'  Test case string = "{text}"; expected = "{STRINGS[selector]}"')
    return TestResult.FAIL


@payload_lines.method
def _payload_lines(case, lines, reporter):
    count = case.cursor().take_int()
    for i in range(count):
        line = lines.read_line()
        if line is None:
            reporter.log(f'  Payload ended after {i} of {count} lines.')
            return TestResult.FAIL
        if line.strip() != 'payload':
            reporter.log(f'  Payload line {lines.line_counter} is {line!r}.')
            return TestResult.FAIL
    return TestResult.PASS


DECLARATIONS = [
    basic_read,
    test_test_name,
    test_test_case_num,
    test_test_result,
    string_pulling,
    payload_lines,
]
