"""Bundled declaration tables.

Each module here lists its tests in a module-level `DECLARATIONS` list,
ready for linesuite.registry.populate(). Load one by dotted path with
linesuite.registry.load_suite() or `linesuite run --suite`.
"""

SELFTEST = 'linesuite.suites.selftest'
SELFTEST_DATA = 'selftest.txt'
