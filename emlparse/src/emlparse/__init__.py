"""
Module: emlparse.__init__

What:
  Aggregate package exports for the emlparse EML decoder and expose the
  primary namespace segments (parser core, configuration, attachment helpers,
  and utilities).

Why:
  Consumers that render a parsed message only need :func:`parse_message` and
  the record types it returns. Keeping those names at the top level lets the
  internal layout evolve without breaking viewers.

How:
  Re-export the entry point and data model from :mod:`emlparse.core` and keep
  an explicit ``__all__``.

Interfaces:
  - parse_message: raw EML text or bytes to :class:`ParsedEmail`.
  - ParsedEmail / Attachment: the result records.
  - ParserConfig: parser tunables.
  - config, core, attachments, utils: subpackages.
"""

from .config.schema import ParserConfig
from .core import Attachment, ParsedEmail, parse_message
from . import attachments, config, core, utils

__version__ = "0.1.0"

__all__ = [
    "parse_message",
    "ParsedEmail",
    "Attachment",
    "ParserConfig",
    "attachments",
    "config",
    "core",
    "utils",
]
