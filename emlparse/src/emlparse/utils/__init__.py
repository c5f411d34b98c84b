"""Expose the public utility surface for emlparse.

What:
  Re-export the logging and checksum helpers that other packages may import
  without knowing the underlying module layout.

Interfaces:
  ``JsonLogger``, ``get_logger``, ``StdlibSink``, ``resolve_sink`` and
  ``checksum``.
"""

from .ids import checksum
from .logging import JsonLogger, StdlibSink, get_logger, resolve_sink

__all__ = [
    "JsonLogger",
    "get_logger",
    "StdlibSink",
    "resolve_sink",
    "checksum",
]
