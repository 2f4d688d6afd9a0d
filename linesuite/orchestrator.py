"""Run registered tests against the blocks of a test data stream.

Tests run in the order their blocks appear in the stream, not in the order
they were requested. Each public run rewinds the stream, so the same
Orchestrator can run several selections one after another.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from typing import IO

from linesuite import registry as _registry_mod
from linesuite.core.errors import DefinitionError
from linesuite.core.reader import BlockReader, LineReader
from linesuite.core.report import Reporter, TextReporter
from linesuite.core.types import RunStatistics, TestCase, TestDefinition, TestResult

logger = logging.getLogger(__name__)


class _State(enum.Enum):
    SEEK_NAME = 'seek-name'
    RUN_BLOCK = 'run-block'
    DONE = 'done'


class Orchestrator:
    """Drives one data stream through the tests of a registry."""

    def __init__(
        self,
        data: IO,
        reporter: Reporter | None = None,
        registry: _registry_mod.Registry | None = None,
        log: IO[str] | None = None,
    ):
        if reporter is None:
            if log is None:
                raise ValueError('Orchestrator needs a reporter or a log sink')
            reporter = TextReporter(log)
        self.reporter = reporter
        self.registry = registry if registry is not None else _registry_mod.default()
        self._blocks = BlockReader(LineReader(data))
        self.statistics = RunStatistics()

    def run_one(self, name: str) -> RunStatistics:
        """Apply every block named `name` to that test."""
        return self.run_group([name])

    def run_group(self, names: Iterable[str]) -> RunStatistics:
        """Apply the blocks of each named test; unknown names are reported and skipped."""
        if isinstance(names, str):
            names = [names]
        self._prepare()
        self.reporter.run_header()
        selected = self.registry.resolve(names, self.reporter.unknown_test)
        self._run(selected)
        self.reporter.run_footer(self.statistics)
        return self.statistics

    def run_all(self) -> RunStatistics:
        """Apply every block whose name is registered."""
        self._prepare()
        self.reporter.run_header()
        self._run(list(self.registry))
        self.reporter.run_footer(self.statistics)
        return self.statistics

    def _prepare(self) -> None:
        self.registry.seal()
        self.statistics = RunStatistics()
        self._blocks.reset()

    def _run(self, selected: list[TestDefinition]) -> None:
        if not selected:
            logger.info('no tests selected; data stream not read')
            self.reporter.no_tests_selected()
            return

        state = _State.SEEK_NAME
        test: TestDefinition | None = None
        while state is not _State.DONE:
            if state is _State.SEEK_NAME:
                name = self._blocks.read_test_name()
                if name is None:
                    state = _State.DONE
                    continue
                test = self.registry.lookup(name, selected)
                if test is not None:
                    state = _State.RUN_BLOCK
                    continue
                if name not in self.registry:
                    self.reporter.unknown_test(name)
                logger.debug('skipping block %r at line %d', name, self._blocks.line_counter)
                while self._blocks.read_test_case() is not None:
                    pass
            else:
                abort_all = self._run_block(test)
                state = _State.DONE if abort_all else _State.SEEK_NAME

        logger.debug(
            'run finished: %d case(s), %d failed, %d block(s)',
            self.statistics.total_cases,
            self.statistics.total_failed,
            self.statistics.tests_run,
        )

    def _run_block(self, test: TestDefinition) -> bool:
        """Apply one block's cases to `test`. Returns True when all testing must stop."""
        self.reporter.test_header(test)
        number = 0
        failed = 0
        abort_all = False
        text = self._blocks.read_test_case()
        while text is not None:
            number += 1
            case = TestCase(number=number, line=self._blocks.line_counter, text=text)
            result = self._apply(test, case)
            if result is TestResult.PASS:
                self.reporter.case_passed(test, case)
            else:
                failed += 1
                self.reporter.case_failed(test, case)
                if result is TestResult.ABORT_ALL_TESTS:
                    self.reporter.all_aborted()
                    abort_all = True
                    break
                if result is TestResult.ABORT_THIS_TEST:
                    self.reporter.test_aborted(test)
                    break
            text = self._blocks.read_test_case()

        self.reporter.test_footer(test, number, failed)
        self.statistics.add_block(number, failed)
        if abort_all:
            self.statistics.aborted = True
        return abort_all

    def _apply(self, test: TestDefinition, case: TestCase) -> TestResult:
        try:
            return test.execute(case, self._blocks.raw, self.reporter)
        except (MemoryError, DefinitionError):
            raise
        except Exception as exc:
            logger.exception('test %r raised on case %d (line %d)', test.name, case.number, case.line)
            self.reporter.log(f'  {type(exc).__name__}: {exc}')
            return TestResult.FAIL
