"""linesuite — data-driven black-box testing from line-oriented test data streams."""

from linesuite.core.errors import (
    CaseDataError,
    ConfigError,
    DefinitionError,
    LineSuiteError,
    RegistryError,
    StreamError,
)
from linesuite.core.report import JsonReporter, Reporter, TextReporter
from linesuite.core.types import RunStatistics, TestCase, TestDefinition, TestResult
from linesuite.orchestrator import Orchestrator
from linesuite.registry import Registry

__version__ = '0.1.0'

__all__ = [
    'CaseDataError',
    'ConfigError',
    'DefinitionError',
    'JsonReporter',
    'LineSuiteError',
    'Orchestrator',
    'Registry',
    'RegistryError',
    'Reporter',
    'RunStatistics',
    'StreamError',
    'TestCase',
    'TestDefinition',
    'TestResult',
    'TextReporter',
]
