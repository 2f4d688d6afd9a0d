"""linesuite — run test methods against the blocks of a test data file.

Usage: linesuite run <data> --suite <module> [-t NAME ...] [--json]

A suite is a Python module with a DECLARATIONS list of TestDefinitions.
With no -t options every registered test runs; one -t runs that test; several
run the group. Tests run in the order their blocks appear in the data file.

Environment variables / .env loading:
  OS environment variables are always used first.
  If a variable is not set, linesuite looks for a .env file starting from
  the current directory and walking up, stopping at the nearest .git boundary.
  Use --env-file to override the .env location explicitly.
  LINESUITE_DATA, LINESUITE_SUITE, LINESUITE_FORMAT and LINESUITE_LOG_LEVEL
  supply defaults for the matching options.
"""

import argparse
import logging
import sys
from importlib import resources
from typing import IO

from linesuite import registry
from linesuite.core.config import Settings, load_env, setup_logging
from linesuite.core.errors import LineSuiteError
from linesuite.core.report import JsonReporter, Reporter, TextReporter
from linesuite.core.types import RunStatistics
from linesuite.orchestrator import Orchestrator
from linesuite.suites import SELFTEST, SELFTEST_DATA

logger = logging.getLogger('linesuite')

RULE = '=' * 42


def _build_parser() -> argparse.ArgumentParser:
    epilog = (
        'Examples:\n'
        '  linesuite run cases.txt --suite mytests.declarations\n'
        '  linesuite run cases.txt --suite mytests.declarations -t parseDate -t parseTime\n'
        '  linesuite run cases.txt --suite mytests.declarations --json -o report.json\n'
        '  linesuite list --suite mytests.declarations\n'
        '  linesuite selftest\n'
    )
    parser = argparse.ArgumentParser(
        prog='linesuite',
        description='Data-driven black-box testing from line-oriented test data files.',
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        '--env-file',
        metavar='PATH',
        default=None,
        help='Path to .env file (default: walk up from cwd to .git boundary)',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug diagnostics on stderr')
    sub = parser.add_subparsers(dest='command', help='Command to run')

    p = sub.add_parser('run', help='Run tests against a data file')
    p.add_argument('data', nargs='?', help='Test data file (default: $LINESUITE_DATA)')
    p.add_argument('-s', '--suite', help='Dotted path of the declaration module (default: $LINESUITE_SUITE)')
    p.add_argument(
        '-t',
        '--test',
        action='append',
        dest='tests',
        metavar='NAME',
        help='Run only this test (repeatable; default: all)',
    )
    p.add_argument('-j', '--json', action='store_true', help='Output JSON instead of text')
    p.add_argument('-o', '--output', metavar='PATH', help='Write the transcript here instead of stdout')

    p = sub.add_parser('list', help='List the tests a suite declares')
    p.add_argument('-s', '--suite', help='Dotted path of the declaration module (default: $LINESUITE_SUITE)')

    p = sub.add_parser('selftest', help='Run the bundled self-test of the harness')
    p.add_argument('-j', '--json', action='store_true', help='Output JSON instead of text')

    return parser


def _make_reporter(as_json: bool, sink: IO[str]) -> Reporter:
    return JsonReporter(sink) if as_json else TextReporter(sink)


def _require(value: str | None, what: str, env: str) -> str:
    if not value:
        raise LineSuiteError(f'no {what} given (pass it on the command line or set {env})')
    return value


def _list(args: argparse.Namespace, settings: Settings) -> int:
    suite = _require(args.suite or settings.suite, 'suite', 'LINESUITE_SUITE')
    reg = registry.populate(registry.load_suite(suite))
    for test in reg:
        print(f'  {test.name:<20} {test.help}')
    return 0


def _run(args: argparse.Namespace, settings: Settings) -> int:
    data_path = _require(args.data or settings.data, 'data file', 'LINESUITE_DATA')
    suite = _require(args.suite or settings.suite, 'suite', 'LINESUITE_SUITE')
    registry.populate(registry.load_suite(suite))
    as_json = args.json or settings.format == 'json'

    try:
        data = open(data_path, 'rb')
    except OSError as exc:
        raise LineSuiteError(f'cannot open data file: {exc}') from exc
    with data:
        if args.output:
            with open(args.output, 'w', encoding='utf-8') as sink:
                stats = _dispatch(Orchestrator(data, _make_reporter(as_json, sink)), args.tests)
        else:
            stats = _dispatch(Orchestrator(data, _make_reporter(as_json, sys.stdout)), args.tests)
    return 1 if stats.total_failed else 0


def _dispatch(orchestrator: Orchestrator, names: list[str] | None) -> RunStatistics:
    if not names:
        return orchestrator.run_all()
    if len(names) == 1:
        return orchestrator.run_one(names[0])
    return orchestrator.run_group(names)


def _selftest(args: argparse.Namespace) -> int:
    """Run the bundled self-test the way the harness was always checked: one, group, all."""
    registry.populate(registry.load_suite(SELFTEST))
    reporter = _make_reporter(args.json, sys.stdout)

    def banner(title: str) -> None:
        # JSON output is one document per run, without banners in between
        if not args.json:
            print(f'{RULE}\n{title}\n{RULE}')

    with resources.files('linesuite.suites').joinpath(SELFTEST_DATA).open('rb') as data:
        suite = Orchestrator(data, reporter)
        banner('Testing "basicRead"')
        suite.run_one('basicRead')
        banner('Testing "stringPulling" and "testTestName"')
        suite.run_group(['stringPulling', 'testTestName'])
        banner('Testing all')
        suite.run_all()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        # Load .env before anything else; OS env vars always win
        env_path = load_env(env_file=args.env_file)
        settings = Settings.from_env()
    except LineSuiteError as exc:
        print(f'linesuite: error: {exc}', file=sys.stderr)
        return 2
    setup_logging('DEBUG' if args.verbose else settings.log_level)
    if env_path:
        logger.info('loaded %s', env_path)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'list':
            return _list(args, settings)
        if args.command == 'selftest':
            return _selftest(args)
        return _run(args, settings)
    except LineSuiteError as exc:
        print(f'linesuite: error: {exc}', file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
