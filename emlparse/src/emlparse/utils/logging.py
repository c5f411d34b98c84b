"""Structured JSON diagnostics for the emlparse pipeline.

What:
  Offer a tiny facade over Python streams so every parser component can emit
  JSON log lines with consistent fields and automatic removal of sensitive
  message content.

Why:
  Parsing diagnostics are never load-bearing, but when a base64 body fails to
  decode an operator needs to know which part was affected without the log
  leaking subjects, filenames, or body text of the mail being inspected.

How:
  Provide a :class:`JsonLogger` dataclass that accepts a target stream, a
  component tag, and a severity threshold. ``extra`` dictionaries are scrubbed
  via a recursive redaction helper before being serialised with ``json.dump``.
  Where the parser accepts a ``logger`` argument it takes a :class:`JsonLogger`,
  any object whose ``debug``/``info``/``warning``/``error`` accept keyword
  fields, or a :class:`logging.Logger`, which :func:`resolve_sink` wraps in a
  :class:`StdlibSink`.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`, :class:`StdlibSink`,
  :func:`resolve_sink`, :data:`LEVELS`.

Invariants & Safety:
  - The emitted payload always includes an ISO8601 timestamp, severity, and
    component name so downstream tooling can index entries reliably.
  - Known sensitive keys are replaced with ``[redacted]`` even inside nested
    dictionaries.
  - Streams are flushed after every write.
"""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union


REDACTED = "[redacted]"

LEVELS: Dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}
"""Severity ordering used for threshold filtering."""

_SENSITIVE_KEYS = frozenset({"subject", "body", "filename", "address", "preview", "snippet"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON entries that include timestamps, severity, a
      component tag, and optional supplemental fields.

    Why:
      Callers decide where parser diagnostics go. Passing a logger bound to an
      in-memory stream silences them; the default writes to ``stderr`` so that
      command-line output on ``stdout`` stays machine readable.

    How:
      Stores the destination stream, component label, and minimum level, then
      exposes :meth:`debug`, :meth:`info`, :meth:`warning` and :meth:`error`
      which merge a canonical payload with redacted extras.
    """

    stream: Any = field(default_factory=lambda: sys.stderr)
    component: str = "emlparse"
    level: str = "WARN"

    def enabled_for(self, level: str) -> bool:
        """Return ``True`` when ``level`` passes the configured threshold."""

        threshold = LEVELS.get(self.level.upper(), LEVELS["WARN"])
        return LEVELS.get(level.upper(), LEVELS["ERROR"]) >= threshold

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a structured JSON log entry.

        What:
          Serialises ``message`` and ``extra`` metadata to the configured stream
          using the schema (``ts``, ``lvl``, ``msg``, ``component``).

        How:
          Drops the entry when ``level`` is below the threshold, otherwise
          builds the core fields, merges a redacted copy of ``extra``, writes a
          JSON line and flushes the stream.

        Args:
          level: Severity name (``DEBUG``, ``INFO``, ``WARN`` or ``ERROR``).
          message: Core log message.
          extra: Optional context dictionary that will be redacted recursively.
        """

        if not self.enabled_for(level):
            return
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        if extra:
            payload.update(self._redact(extra))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with sensitive values masked.

        Walks the dictionary, applying the sentinel to known keys and recursing
        into nested dictionaries while preserving structure.
        """

        result: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _SENSITIVE_KEYS:
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = JsonLogger._redact(value)
            else:
                result[key] = value
        return result


def get_logger(component: str, *, level: str = "WARN", stream: Any = None) -> JsonLogger:
    """Construct a :class:`JsonLogger` for the requested component.

    Args:
      component: Logical subsystem name to include in log payloads.
      level: Minimum severity that is written.
      stream: Destination stream; ``stderr`` when omitted.

    Returns:
      Configured :class:`JsonLogger` instance.
    """

    if stream is None:
        return JsonLogger(component=component, level=level)
    return JsonLogger(stream=stream, component=component, level=level)


class StdlibSink:
    """Adapt a :mod:`logging` logger to the keyword-argument sink interface.

    Parser components call ``sink.warning("event", key=value)``. A
    :class:`logging.Logger` rejects unknown keyword arguments, so the fields
    are redacted and rendered as ``key=value`` pairs after the event name.
    """

    def __init__(self, logger: Union[logging.Logger, logging.LoggerAdapter]) -> None:
        self.logger = logger

    def _emit(self, level: int, message: str, fields: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if not fields:
            self.logger.log(level, "%s", message)
            return
        details = " ".join(f"{key}={value}" for key, value in JsonLogger._redact(fields).items())
        self.logger.log(level, "%s %s", message, details)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit(logging.ERROR, message, kwargs)


def resolve_sink(logger: Any, default: Any) -> Any:
    """Return the diagnostic sink to use for an optional ``logger`` argument.

    ``None`` selects ``default``; standard library loggers are wrapped in
    :class:`StdlibSink`; anything else is used as given.
    """

    if logger is None:
        return default
    if isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        return StdlibSink(logger)
    return logger
