"""Exceptions raised while building a Terraform breakdown."""


class BreakdownError(RuntimeError):
    """Base class for all breakdown errors."""


class TraversalError(BreakdownError):
    """The root directory is missing, not a directory, or cannot be listed."""


class DocumentParseError(BreakdownError):
    """A configuration file is not valid HCL (or JSON)."""


class SchemaMatchError(BreakdownError):
    """A body does not have the expected block/attribute shape."""


class ExpressionEvaluationError(BreakdownError):
    """An expression references something that needs an evaluation context."""


class ValueFileError(BreakdownError):
    """A variable-value file could not be read."""


class ValueFileParseError(ValueFileError):
    """The value file failed to parse."""


class ValueFileAttributeError(ValueFileError):
    """The value file parsed but its top-level attributes could not be enumerated."""


class ConfigError(BreakdownError):
    """The configuration file is unreadable or malformed."""
