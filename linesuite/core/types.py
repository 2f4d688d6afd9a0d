"""Shared types for linesuite: Line, TestResult, TestCase, TestDefinition, RunStatistics."""

from __future__ import annotations

import enum
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from linesuite.core.errors import CaseDataError, DefinitionError

if TYPE_CHECKING:
    from linesuite.core.reader import PayloadLines
    from linesuite.core.report import Reporter


class LineKind(enum.Enum):
    COMMENT = 'comment'
    BLANK = 'blank'
    NAME = 'name'
    DATA = 'data'


@dataclass(frozen=True)
class Line:
    """One classified line of the data stream.

    For NAME lines `text` is the test name, for DATA lines the trimmed case
    text. COMMENT and BLANK lines keep the raw line.
    """

    kind: LineKind
    text: str


class TestResult(enum.Enum):
    """Result codes returned by test methods."""

    __test__ = False

    PASS = 'pass'
    FAIL = 'fail'
    ABORT_THIS_TEST = 'abortThisTest'  # fail, and skip the rest of this block
    ABORT_ALL_TESTS = 'abortAllTests'  # fail, and stop the whole run

    @classmethod
    def parse(cls, text: str) -> TestResult:
        """Parse `pass`, `fail`, `abortThisTest`, `abortAllTests` (or snake_case)."""
        key = text.strip()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise ValueError(f'Unknown test result: {text!r}')

    @property
    def failed(self) -> bool:
        return self is not TestResult.PASS


class CaseCursor:
    """Sequential reader over one test case's text.

    Tokens are whitespace separated; `take_quoted` understands shell-style
    quoting so a case line can carry strings with embedded spaces.
    """

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    @property
    def exhausted(self) -> bool:
        return not self._text[self._pos :].strip()

    def _skip_space(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def take(self) -> str:
        """Return the next whitespace-delimited token."""
        self._skip_space()
        if self._pos >= len(self._text):
            raise CaseDataError(f'No more tokens in test case {self._text!r}')
        start = self._pos
        while self._pos < len(self._text) and not self._text[self._pos].isspace():
            self._pos += 1
        return self._text[start : self._pos]

    def take_int(self) -> int:
        token = self.take()
        try:
            return int(token)
        except ValueError:
            raise CaseDataError(f'Expected an integer, got {token!r}') from None

    def take_bool(self) -> bool:
        token = self.take().lower()
        if token in ('1', 'true'):
            return True
        if token in ('0', 'false'):
            return False
        raise CaseDataError(f'Expected a boolean (0/1/true/false), got {token!r}')

    def take_quoted(self) -> str:
        """Return the next token, honouring '...' and "..." quoting and backslash escapes."""
        self._skip_space()
        lexer = shlex.shlex(self._text[self._pos :], posix=True)
        lexer.whitespace_split = True
        lexer.commenters = ''
        try:
            token = lexer.get_token()
        except ValueError as exc:
            raise CaseDataError(f'Bad quoted string in test case: {exc}') from None
        if token is None or token == lexer.eof:
            raise CaseDataError(f'No more tokens in test case {self._text!r}')
        # shlex only reads as far as it needs; its instream position is where the token ended
        self._pos += lexer.instream.tell()
        return token

    def rest(self) -> str:
        """Return everything not yet read, stripped."""
        remainder = self._text[self._pos :].strip()
        self._pos = len(self._text)
        return remainder


@dataclass(frozen=True)
class TestCase:
    """A single case handed to a test method."""

    __test__ = False

    number: int  # 1-based within its block
    line: int  # source line in the data stream
    text: str

    def cursor(self) -> CaseCursor:
        return CaseCursor(self.text)


TestMethod = Callable[['TestCase', 'PayloadLines', 'Reporter'], TestResult]


class TestDefinition:
    """A named test with its test method.

    Usage in a declaration module:

        equal_pair = TestDefinition(name='equalPair', help='Both numbers match')

        @equal_pair.method
        def _equal_pair(case, lines, reporter):
            cur = case.cursor()
            return TestResult.PASS if cur.take_int() == cur.take_int() else TestResult.FAIL

        DECLARATIONS = [equal_pair]
    """

    __test__ = False

    def __init__(self, name: str, help: str = ''):
        if not name or name != name.strip():
            raise DefinitionError(f'Invalid test name: {name!r}')
        self.name = name
        self.help = help
        self._method: TestMethod | None = None

    def __repr__(self) -> str:
        return f'TestDefinition(name={self.name!r})'

    def method(self, fn: TestMethod) -> TestMethod:
        """Decorator to attach the test method."""
        self._method = fn
        return fn

    def execute(self, case: TestCase, lines: PayloadLines, reporter: Reporter) -> TestResult:
        """Apply one test case to the test method."""
        if self._method is None:
            raise DefinitionError(f'Test {self.name} has no test method')
        result: Any = self._method(case, lines, reporter)
        if not isinstance(result, TestResult):
            raise DefinitionError(f'Test {self.name} returned {result!r}, expected a TestResult')
        return result


@dataclass
class RunStatistics:
    """Counters for one orchestration run."""

    total_cases: int = 0
    total_failed: int = 0
    tests_run: int = 0  # blocks executed
    aborted: bool = False

    @property
    def total_passed(self) -> int:
        return self.total_cases - self.total_failed

    def add_block(self, cases: int, failed: int) -> None:
        if not 0 <= failed <= cases:
            raise ValueError(f'block reports {failed} failed of {cases} case(s)')
        self.tests_run += 1
        self.total_cases += cases
        self.total_failed += failed
