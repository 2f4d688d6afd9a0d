"""Tests for linesuite.orchestrator — selection, abort semantics, statistics."""

import io

import pytest
from linesuite.core.errors import DefinitionError, RegistryError
from linesuite.core.report import TextReporter
from linesuite.core.types import TestDefinition, TestResult
from linesuite.orchestrator import Orchestrator
from linesuite.registry import Registry


class Recorder:
    """Reporter that records every hook call."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def run_header(self):
        self.events.append(('run_header',))

    def run_footer(self, stats):
        self.events.append(('run_footer', stats.total_cases, stats.total_failed))

    def test_header(self, test):
        self.events.append(('test_header', test.name))

    def unknown_test(self, name):
        self.events.append(('unknown', name))

    def no_tests_selected(self):
        self.events.append(('no_tests',))

    def case_passed(self, test, case):
        self.events.append(('pass', test.name, case.number, case.line))

    def case_failed(self, test, case):
        self.events.append(('fail', test.name, case.number, case.line))

    def test_aborted(self, test):
        self.events.append(('abort_test', test.name))

    def all_aborted(self):
        self.events.append(('abort_all',))

    def test_footer(self, test, cases, failed):
        self.events.append(('test_footer', test.name, cases, failed))

    def log(self, text):
        self.events.append(('log', text))


def _equal_pair() -> TestDefinition:
    """alpha: pass iff the case holds two equal integers."""
    alpha = TestDefinition(name='alpha')

    @alpha.method
    def _alpha(case, lines, reporter):
        cur = case.cursor()
        return TestResult.PASS if cur.take_int() == cur.take_int() else TestResult.FAIL

    return alpha


def _echo_result(name: str, calls: list) -> TestDefinition:
    """Returns the result named by the case text, recording each call."""
    defn = TestDefinition(name=name)

    @defn.method
    def _run(case, lines, reporter):
        calls.append((name, case.text))
        return TestResult.parse(case.cursor().take())

    return defn


def _setup(data: str, *tests: TestDefinition, reporter=None) -> tuple[Orchestrator, Registry]:
    reg = Registry()
    reg.populate(tests)
    orch = Orchestrator(io.StringIO(data), reporter or Recorder(), registry=reg)
    return orch, reg


class TestScenarios:
    def test_alpha_one_pass_one_fail(self) -> None:
        sink = io.StringIO()
        orch, _ = _setup(':alpha\n1 1\n2 3\n', _equal_pair(), reporter=TextReporter(sink))
        stats = orch.run_one('alpha')
        assert (stats.total_cases, stats.total_failed, stats.total_passed) == (2, 1, 1)
        assert 'Test case failed -- "alpha"[2] (line 3)' in sink.getvalue()
        assert '1 of 2 test cases that were applied to test "alpha" failed.' in sink.getvalue()

    def test_ghost_block_is_skipped_and_reported(self) -> None:
        calls: list = []
        data = ':ghost\npass\n:alpha\n4 4\n'
        alpha = _equal_pair()
        orch, _ = _setup(data, alpha, _echo_result('other', calls))
        stats = orch.run_group(['alpha'])
        events = orch.reporter.events
        assert ('unknown', 'ghost') in events
        assert ('pass', 'alpha', 1, 4) in events
        assert calls == []
        assert stats.total_cases == 1

    def test_comments_and_blanks_are_not_cases(self) -> None:
        calls: list = []
        data = ':t\npass\n\n// fail\n   \npass\n'
        orch, _ = _setup(data, _echo_result('t', calls))
        stats = orch.run_all()
        assert calls == [('t', 'pass'), ('t', 'pass')]
        assert stats.total_cases == 2


class TestSelection:
    def test_unselected_block_contributes_nothing(self) -> None:
        calls: list = []
        data = ':a\npass\nfail\n:b\npass\n:a\nfail\n'
        orch, _ = _setup(data, _echo_result('a', calls), _echo_result('b', calls))
        stats = orch.run_one('b')
        assert calls == [('b', 'pass')]
        assert (stats.total_cases, stats.total_failed, stats.tests_run) == (1, 0, 1)
        # registered but unselected names are not unknown
        assert not any(e[0] == 'unknown' for e in orch.reporter.events)

    def test_blocks_run_in_stream_order(self) -> None:
        calls: list = []
        data = ':b\npass\n:a\npass\n'
        orch, _ = _setup(data, _echo_result('a', calls), _echo_result('b', calls))
        orch.run_group(['a', 'b'])
        assert [c[0] for c in calls] == ['b', 'a']

    def test_unknown_requested_name(self) -> None:
        calls: list = []
        orch, _ = _setup(':a\npass\n', _echo_result('a', calls))
        stats = orch.run_group(['nope', 'a'])
        assert orch.reporter.events[:2] == [('run_header',), ('unknown', 'nope')]
        assert stats.total_cases == 1

    def test_run_one_unknown_degrades_to_no_tests(self) -> None:
        calls: list = []
        orch, _ = _setup(':a\npass\n', _echo_result('a', calls))
        stats = orch.run_one('nope')
        assert orch.reporter.events == [
            ('run_header',),
            ('unknown', 'nope'),
            ('no_tests',),
            ('run_footer', 0, 0),
        ]
        assert calls == []
        assert stats.total_cases == 0

    def test_empty_group_is_a_no_op(self) -> None:
        orch, _ = _setup(':a\npass\n', _echo_result('a', []))
        stats = orch.run_group([])
        assert ('no_tests',) in orch.reporter.events
        assert stats.tests_run == 0

    def test_run_group_accepts_a_single_string(self) -> None:
        calls: list = []
        orch, _ = _setup(':ab\npass\n', _echo_result('ab', calls))
        orch.run_group('ab')
        assert calls == [('ab', 'pass')]

    def test_repeated_name_restarts_numbering(self) -> None:
        orch, _ = _setup(':t\npass\npass\n:t\npass\n', _echo_result('t', []))
        stats = orch.run_all()
        passes = [e for e in orch.reporter.events if e[0] == 'pass']
        assert [(e[2], e[3]) for e in passes] == [(1, 2), (2, 3), (1, 5)]
        assert stats.tests_run == 2


class TestAbort:
    def test_abort_this_test_stops_only_the_block(self) -> None:
        calls: list = []
        data = ':a\npass\nabortThisTest\npass\n:b\npass\n:a\npass\n'
        orch, _ = _setup(data, _echo_result('a', calls), _echo_result('b', calls))
        stats = orch.run_all()
        assert calls == [('a', 'pass'), ('a', 'abortThisTest'), ('b', 'pass'), ('a', 'pass')]
        assert (stats.total_cases, stats.total_failed) == (4, 1)
        assert not stats.aborted
        events = orch.reporter.events
        i = events.index(('abort_test', 'a'))
        assert events[i - 1] == ('fail', 'a', 2, 3)
        assert events[i + 1] == ('test_footer', 'a', 2, 1)

    def test_abort_all_halts_everything(self) -> None:
        calls: list = []
        data = ':a\npass\nabortAllTests\npass\n:b\npass\n:a\npass\n'
        orch, _ = _setup(data, _echo_result('a', calls), _echo_result('b', calls))
        stats = orch.run_all()
        assert calls == [('a', 'pass'), ('a', 'abortAllTests')]
        assert (stats.total_cases, stats.total_failed) == (2, 1)
        assert stats.aborted
        assert orch.reporter.events[-3:] == [
            ('abort_all',),
            ('test_footer', 'a', 2, 1),
            ('run_footer', 2, 1),
        ]

    def test_fail_never_halts(self) -> None:
        calls: list = []
        orch, _ = _setup(':a\nfail\nfail\nfail\n', _echo_result('a', calls))
        stats = orch.run_all()
        assert len(calls) == 3
        assert stats.total_failed == 3


class TestRerun:
    def test_rerun_is_identical(self) -> None:
        data = ':alpha\n1 1\n2 3\n:ghost\nx\n:alpha\n5 5\n'
        sink = io.StringIO()
        orch, _ = _setup(data, _equal_pair(), reporter=TextReporter(sink))
        first = orch.run_all()
        transcript = sink.getvalue()
        sink.seek(0)
        sink.truncate()
        second = orch.run_all()
        assert first == second
        assert sink.getvalue() == transcript
        assert first is not second

    def test_registry_is_sealed_by_a_run(self) -> None:
        orch, reg = _setup(':a\npass\n', _echo_result('a', []))
        orch.run_all()
        with pytest.raises(RegistryError):
            reg.register(TestDefinition(name='late'))

    def test_invariant_failed_not_above_total(self) -> None:
        data = ':a\nfail\npass\nabortThisTest\n:a\nfail\n'
        orch, _ = _setup(data, _echo_result('a', []))
        for run in (orch.run_all, lambda: orch.run_one('a'), lambda: orch.run_group(['a', 'x'])):
            stats = run()
            assert stats.total_failed <= stats.total_cases


class TestTestMethods:
    def test_payload_lines(self) -> None:
        seen: list = []
        reader = TestDefinition(name='multi')

        @reader.method
        def _multi(case, lines, reporter):
            for _ in range(case.cursor().take_int()):
                seen.append(lines.read_line())
            return TestResult.PASS

        data = ':multi\n2\n// raw\nsecond\n1\nthird\n'
        orch, _ = _setup(data, reader)
        stats = orch.run_all()
        assert seen == ['// raw', 'second', 'third']
        assert stats.total_cases == 2

    def test_over_read_cannot_swallow_next_block(self) -> None:
        calls: list = []
        greedy = TestDefinition(name='greedy')

        @greedy.method
        def _greedy(case, lines, reporter):
            while lines.read_line() is not None:
                pass
            return TestResult.PASS

        orch, _ = _setup(':greedy\ngo\nmore\n:b\npass\n', greedy, _echo_result('b', calls))
        orch.run_all()
        assert calls == [('b', 'pass')]

    def test_raising_method_is_a_failed_case(self) -> None:
        boom = TestDefinition(name='boom')

        @boom.method
        def _boom(case, lines, reporter):
            if case.text == 'bad':
                raise ValueError('cannot parse')
            return TestResult.PASS

        orch, _ = _setup(':boom\nbad\nok\n', boom)
        stats = orch.run_all()
        assert (stats.total_cases, stats.total_failed) == (2, 1)
        assert ('log', '  ValueError: cannot parse') in orch.reporter.events

    def test_case_data_error_is_a_failed_case(self) -> None:
        orch, _ = _setup(':alpha\n1\n', _equal_pair())
        stats = orch.run_all()
        assert stats.total_failed == 1

    def test_bad_return_value_propagates(self) -> None:
        bad = TestDefinition(name='bad')
        bad.method(lambda case, lines, reporter: None)
        orch, _ = _setup(':bad\nx\n', bad)
        with pytest.raises(DefinitionError):
            orch.run_all()

    def test_method_can_write_to_transcript(self) -> None:
        chatty = TestDefinition(name='chatty')

        @chatty.method
        def _chatty(case, lines, reporter):
            reporter.log(f'  saw {case.text}')
            return TestResult.PASS

        sink = io.StringIO()
        orch, _ = _setup(':chatty\nhello\n', chatty, reporter=TextReporter(sink))
        orch.run_all()
        assert '  saw hello\n' in sink.getvalue()


class TestConstruction:
    def test_log_sink_builds_text_reporter(self) -> None:
        sink = io.StringIO()
        orch = Orchestrator(io.StringIO(''), log=sink, registry=Registry())
        assert isinstance(orch.reporter, TextReporter)

    def test_needs_reporter_or_sink(self) -> None:
        with pytest.raises(ValueError):
            Orchestrator(io.StringIO(''))
