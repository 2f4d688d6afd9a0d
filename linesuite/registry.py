"""Test definition registry.

A registry is an append-only list of TestDefinitions. Registration prepends,
so iteration (and therefore "run all" and name lookup) sees the most recently
registered definition first. When two definitions share a name the later one
shadows the earlier.

The process-wide default registry is populated once, by the host program,
from explicit declaration tables: each declaration module lists its
definitions in a module-level `DECLARATIONS` list. After the first
orchestration run the registry is sealed and cannot grow.
"""

from __future__ import annotations

import atexit
import importlib
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from types import ModuleType

from linesuite.core.errors import RegistryError
from linesuite.core.types import TestDefinition

logger = logging.getLogger(__name__)


class _Node:
    __slots__ = ('test', 'next')

    def __init__(self, test: TestDefinition, next: _Node | None):
        self.test = test
        self.next = next


class Registry:
    """Singly linked, prepend-only collection of test definitions."""

    def __init__(self) -> None:
        self._head: _Node | None = None
        self._size = 0
        self._sealed = False
        self._populated = False

    def __iter__(self) -> Iterator[TestDefinition]:
        node = self._head
        while node is not None:
            yield node.test
            node = node.next

    def __len__(self) -> int:
        return self._size

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def names(self) -> list[str]:
        return [test.name for test in self]

    def register(self, test: TestDefinition) -> None:
        """Prepend a definition. Registering the same object twice is a no-op."""
        if self._sealed:
            raise RegistryError(f'Cannot register {test.name!r}: registry is sealed')
        if any(existing is test for existing in self):
            return
        if self.lookup(test.name) is not None:
            logger.warning('test %r registered more than once; the latest registration wins', test.name)
        self._head = _Node(test, self._head)
        self._size += 1

    def populate(self, declarations: Iterable[TestDefinition]) -> None:
        """Register an explicit table of declarations. Allowed exactly once."""
        if self._populated:
            raise RegistryError('Registry has already been populated')
        self._populated = True
        for test in declarations:
            self.register(test)
        logger.debug('registry populated with %d test(s)', self._size)

    def lookup(self, name: str, scope: Sequence[TestDefinition] | None = None) -> TestDefinition | None:
        """First definition named `name`, searching `scope` or the whole registry."""
        for test in self if scope is None else scope:
            if test.name == name:
                return test
        return None

    def resolve(self, names: Iterable[str], report_unknown: Callable[[str], None]) -> list[TestDefinition]:
        """Map names to definitions; unknown names go to `report_unknown` and are dropped.

        Each resolved definition is prepended, so the result is in reverse request order.
        """
        selected: list[TestDefinition] = []
        for name in names:
            test = self.lookup(name)
            if test is None:
                report_unknown(name)
            else:
                selected.insert(0, test)
        return selected

    def teardown(self) -> None:
        """Release every node. Safe to call more than once."""
        node = self._head
        self._head = None
        self._size = 0
        while node is not None:
            node.next, node = None, node.next


_registry = Registry()
_teardown_hooked = False


def default() -> Registry:
    """The process-wide registry."""
    return _registry


def collect(module: ModuleType) -> list[TestDefinition]:
    """Return the `DECLARATIONS` table of a declaration module."""
    table = getattr(module, 'DECLARATIONS', None)
    if table is None:
        raise RegistryError(f'{module.__name__} has no DECLARATIONS table')
    tests = list(table)
    for test in tests:
        if not isinstance(test, TestDefinition):
            raise RegistryError(f'{module.__name__}.DECLARATIONS holds {test!r}, not a TestDefinition')
    return tests


def load_suite(path: str) -> list[TestDefinition]:
    """Import a declaration module by dotted path and return its table."""
    try:
        module = importlib.import_module(path)
    except ImportError as exc:
        raise RegistryError(f'Cannot import test suite {path!r}: {exc}') from exc
    return collect(module)


def populate(declarations: Iterable[TestDefinition]) -> Registry:
    """Populate the process-wide registry. Call once, before any run."""
    global _teardown_hooked
    _registry.populate(declarations)
    if not _teardown_hooked:
        atexit.register(teardown)
        _teardown_hooked = True
    return _registry


def get(name: str) -> TestDefinition:
    """Get a test definition by name."""
    test = _registry.lookup(name)
    if test is None:
        raise KeyError(f'Unknown test: {name}. Available: {", ".join(sorted(_registry.names()))}')
    return test


def all_definitions() -> list[TestDefinition]:
    """All registered definitions, most recently registered first."""
    return list(_registry)


def teardown() -> None:
    _registry.teardown()
