"""Exception hierarchy for the emlparse outer surfaces.

The parser itself never raises once handed a string or bytes; these types are
used by the configuration loader and the command-line boundary.
"""
from __future__ import annotations


class EmlParseError(Exception):
    """Base error for every failure reported by emlparse."""


class ConfigLoadError(EmlParseError):
    """Raised when a configuration file cannot be read, parsed or validated."""


class SourceError(EmlParseError):
    """Raised when the message source is unreadable or is not an EML file."""
