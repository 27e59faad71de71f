from __future__ import annotations


class BethYwError(Exception):
    """Base class for every error raised by bethyw."""


class NotFoundError(BethYwError, LookupError):
    """Raised when an area code or a year has no entry."""


class ParseError(BethYwError, ValueError):
    """Raised for malformed CSV/JSON, unusable streams, or an unexpected data type."""


class ConfigError(BethYwError, IndexError):
    """Raised when a column mapping has fewer entries than a format needs."""


class ValidationError(BethYwError, ValueError):
    """Raised when a year string fails validation."""


class UnknownKeyError(BethYwError, ValueError):
    """Raised when a requested dataset code matches no known dataset."""


class InputSourceError(BethYwError, OSError):
    """Raised when an input source cannot be opened or fetched."""


class DatasetImportError(BethYwError):
    """Raised by the orchestrator when a whole dataset fails to import."""
