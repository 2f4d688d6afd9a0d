"""Transcript reporters — text and JSON output for linesuite runs.

The orchestrator calls the Reporter hooks at fixed points of a run. Swap in
another implementation to change the transcript format; the order of the
calls never changes.
"""

from __future__ import annotations

import json
from typing import IO, Any, Protocol

from linesuite.core.types import RunStatistics, TestCase, TestDefinition

RULE = '-' * 79


class Reporter(Protocol):
    """Lifecycle hooks invoked by the orchestrator."""

    def run_header(self) -> None: ...

    def run_footer(self, stats: RunStatistics) -> None: ...

    def test_header(self, test: TestDefinition) -> None: ...

    def unknown_test(self, name: str) -> None: ...

    def no_tests_selected(self) -> None: ...

    def case_passed(self, test: TestDefinition, case: TestCase) -> None: ...

    def case_failed(self, test: TestDefinition, case: TestCase) -> None: ...

    def test_aborted(self, test: TestDefinition) -> None: ...

    def all_aborted(self) -> None: ...

    def test_footer(self, test: TestDefinition, cases: int, failed: int) -> None: ...

    def log(self, text: str) -> None:
        """Free-form transcript line, used by test methods."""
        ...


class TextReporter:
    """Plain-text transcript written line by line to a sink."""

    def __init__(self, sink: IO[str]):
        self.sink = sink

    def _write(self, *lines: str) -> None:
        for line in lines:
            self.sink.write(line + '\n')

    def log(self, text: str) -> None:
        self._write(text)

    def run_header(self) -> None:
        pass

    def run_footer(self, stats: RunStatistics) -> None:
        plural = 'case' if stats.total_cases == 1 else 'cases'
        self._write(RULE, f'Total: {stats.total_failed} of {stats.total_cases} test {plural} failed.', '')

    def test_header(self, test: TestDefinition) -> None:
        self._write(RULE, f'Test name:  "{test.name}"', '')

    def unknown_test(self, name: str) -> None:
        self._write(RULE, f'"{name}" is not a registered test object.', '')

    def no_tests_selected(self) -> None:
        self._write('*** No valid test names were provided! ***', '')

    def case_passed(self, test: TestDefinition, case: TestCase) -> None:
        pass

    def case_failed(self, test: TestDefinition, case: TestCase) -> None:
        self._write('', f'Test case failed -- "{test.name}"[{case.number}] (line {case.line})', '')

    def test_aborted(self, test: TestDefinition) -> None:
        self._write('*** The remaining test cases have been skipped. ***', '')

    def all_aborted(self) -> None:
        self._write('*** Testing has been aborted. ***', '')

    def test_footer(self, test: TestDefinition, cases: int, failed: int) -> None:
        applied = 'test case that was' if cases == 1 else 'test cases that were'
        self._write(f'{failed} of {cases} {applied} applied to test "{test.name}" failed.', '')


class JsonReporter:
    """Collects run events and writes a single JSON document at the end of the run."""

    def __init__(self, sink: IO[str]):
        self.sink = sink
        self._doc: dict[str, Any] = {}
        self._current: dict[str, Any] | None = None

    def log(self, text: str) -> None:
        if self._current is not None:
            self._current['log'].append(text)
        else:
            self._doc.setdefault('log', []).append(text)

    def run_header(self) -> None:
        self._doc = {'tests': [], 'unknown': [], 'no_tests_selected': False}
        self._current = None

    def run_footer(self, stats: RunStatistics) -> None:
        self._doc['summary'] = {
            'total': stats.total_cases,
            'pass': stats.total_passed,
            'fail': stats.total_failed,
            'tests_run': stats.tests_run,
            'aborted': stats.aborted,
        }
        self.sink.write(json.dumps(self._doc, indent=2) + '\n')

    def test_header(self, test: TestDefinition) -> None:
        self._current = {'name': test.name, 'cases': [], 'log': [], 'aborted': None}
        self._doc['tests'].append(self._current)

    def unknown_test(self, name: str) -> None:
        self._doc['unknown'].append(name)

    def no_tests_selected(self) -> None:
        self._doc['no_tests_selected'] = True

    def _entry(self) -> dict:
        if self._current is None:
            raise RuntimeError('JsonReporter: case or footer reported outside a test block')
        return self._current

    def _case(self, case: TestCase, passed: bool) -> None:
        self._entry()['cases'].append({'number': case.number, 'line': case.line, 'pass': passed})

    def case_passed(self, test: TestDefinition, case: TestCase) -> None:
        self._case(case, True)

    def case_failed(self, test: TestDefinition, case: TestCase) -> None:
        self._case(case, False)

    def test_aborted(self, test: TestDefinition) -> None:
        self._entry()['aborted'] = 'test'

    def all_aborted(self) -> None:
        self._entry()['aborted'] = 'all'

    def test_footer(self, test: TestDefinition, cases: int, failed: int) -> None:
        entry = self._entry()
        entry['total'] = cases
        entry['fail'] = failed
        self._current = None
