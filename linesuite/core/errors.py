"""Exception hierarchy for linesuite."""


class LineSuiteError(Exception):
    """Base class for every error raised by linesuite itself."""


class ConfigError(LineSuiteError):
    """Invalid setting in the environment, a .env file or on the command line."""


class StreamError(LineSuiteError):
    """The test data stream cannot be used (e.g. rewinding a pipe)."""


class RegistryError(LineSuiteError):
    """Registry lifecycle violation: populating twice, registering after sealing."""


class DefinitionError(LineSuiteError):
    """A test definition is unusable: no method attached, or a bad return value."""


class CaseDataError(LineSuiteError):
    """A test method tried to read more from a test case than it holds."""
