"""
Exceptions raised by mdconcat.

The ``*Warning`` classes mark per-item problems that are raised inside a
component and recovered at its boundary; they never abort a run.
"""


class MdConcatError(Exception):
    """Base exception for mdconcat errors."""


class ConfigurationError(MdConcatError):
    """Raised when required options are missing or invalid."""


class RootNotFound(ConfigurationError):
    """Raised when an input root does not exist or is not a directory."""


class IgnoreRuleParseWarning(MdConcatError):
    """Raised when an ignore file cannot be read or compiled."""


class FileReadWarning(MdConcatError):
    """Raised when a candidate file cannot be read or decoded as text."""


class OutputError(MdConcatError):
    """Raised when the output document cannot be created or written."""
