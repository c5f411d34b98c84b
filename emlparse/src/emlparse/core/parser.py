"""Message-level orchestration: raw EML text in, :class:`ParsedEmail` out.

What:
  Compose line splitting, header parsing, boundary extraction, multipart
  splitting, part decoding, attachment filtering and address normalisation
  into the single :func:`parse_message` entry point.

Why:
  Callers (viewers, the CLI, ingestion jobs) want one call that never raises
  on malformed mail and always returns a usable record with sensible
  defaults.

How:
  Parse the top-level header block, then walk the MIME tree depth first.
  Nested ``multipart/*`` parts are split recursively until
  ``ParserConfig.max_depth`` is reached; every visited part is recorded in a
  flat arena of :class:`PartRecord` entries that reference their parent by
  index. Inline bodies overwrite earlier bodies of the same kind, attachments
  accumulate and are filtered once at the end.

Interfaces:
  :func:`parse_message`.

Invariants & Safety:
  - No exception escapes :func:`parse_message`; a part that fails is logged,
    recorded as ``failed`` and skipped.
  - State lives in a per-call :class:`_TreeWalker`, so concurrent parses on
    different threads share nothing.
"""
from __future__ import annotations

from typing import Any, List, Optional, Union

from ..config.schema import ParserConfig
from ..utils.logging import get_logger, resolve_sink
from .encoding import decode_content
from .headers import (
    decode_encoded_words,
    normalize_address_field,
    parse_header_block,
    split_lines,
)
from .model import (
    AttachmentCandidate,
    HeaderMap,
    HtmlBody,
    ParsedEmail,
    PartRecord,
    TextBody,
)
from .multipart import extract_boundary, split_multipart
from .parts import decode_part, filter_attachments, parse_mime_part


RawMessage = Union[str, bytes, bytearray, memoryview]


class _TreeWalker:
    """Mutable accumulator for one :func:`parse_message` call."""

    def __init__(self, config: ParserConfig, logger: Any) -> None:
        self.config = config
        self.logger = logger
        self.records: List[PartRecord] = []
        self.candidates: List[AttachmentCandidate] = []
        self.text = ""
        self.html = ""

    def _record(self, parent: Optional[int], depth: int, content_type: str, kind: str) -> int:
        index = len(self.records)
        self.records.append(
            PartRecord(
                index=index,
                parent=parent,
                depth=depth,
                content_type=content_type.split(";")[0].strip(),
                kind=kind,
            )
        )
        return index

    def walk_message(self, headers: HeaderMap, body: str) -> None:
        content_type = headers.value("content-type")
        boundary = extract_boundary(content_type)
        if boundary is not None:
            root = self._record(None, 0, content_type, "multipart")
            self._walk_segments(body, boundary, root, 1)
            return
        content = decode_content(
            body, headers.value("content-transfer-encoding"), logger=self.logger
        )
        if "text/html" in content_type.lower():
            self.html = content
            self._record(None, 0, content_type, "html")
        else:
            self.text = content
            self._record(None, 0, content_type, "text")

    def _walk_segments(self, body: str, boundary: str, parent: int, depth: int) -> None:
        segments = split_multipart(body, boundary)
        self.logger.debug("multipart_split", parts=len(segments), depth=depth)
        for segment in segments:
            try:
                self._visit(segment, parent, depth)
            except Exception as exc:
                self.logger.warning("part_failed", error=str(exc), depth=depth)
                self._record(parent, depth, "", "failed")

    def _visit(self, segment: str, parent: int, depth: int) -> None:
        part = parse_mime_part(segment)
        content_type = part.content_type
        boundary = extract_boundary(content_type)
        if boundary is not None:
            if depth >= self.config.max_depth:
                self.logger.warning("multipart_depth_exceeded", depth=depth, max_depth=self.config.max_depth)
                self._record(parent, depth, content_type, "truncated")
                return
            index = self._record(parent, depth, content_type, "multipart")
            self._walk_segments(part.raw_body, boundary, index, depth + 1)
            return

        outcome = decode_part(part, config=self.config, logger=self.logger)
        if outcome is None:
            self._record(parent, depth, content_type, "discarded")
        elif isinstance(outcome, AttachmentCandidate):
            self.candidates.append(outcome)
            self._record(parent, depth, content_type, "attachment")
        elif isinstance(outcome, HtmlBody):
            self.html = outcome.content
            self._record(parent, depth, content_type, "html")
        elif isinstance(outcome, TextBody):
            self.text = outcome.content
            self._record(parent, depth, content_type, "text")


def _coerce_text(raw: Optional[RawMessage]) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    data = bytes(raw)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _parse(text: str, config: ParserConfig, logger: Any) -> ParsedEmail:
    lines = split_lines(text)
    headers, body_start = parse_header_block(lines)
    body = "\n".join(lines[body_start:])
    if body.endswith("\n"):
        body = body[:-1]

    walker = _TreeWalker(config, logger)
    walker.walk_message(headers, body)
    attachments = filter_attachments(
        walker.candidates,
        placeholder_name=config.placeholder_name,
        min_size=config.min_attachment_size,
    )
    logger.debug(
        "message_parsed",
        parts=len(walker.records),
        attachments=len(attachments),
        dropped=len(walker.candidates) - len(attachments),
    )
    return ParsedEmail(
        from_=normalize_address_field(headers.value("from"), logger=logger) or config.default_from,
        to=normalize_address_field(headers.value("to"), logger=logger),
        cc=normalize_address_field(headers.value("cc"), logger=logger),
        subject=decode_encoded_words(headers.value("subject"), logger=logger) or config.default_subject,
        date=headers.value("date"),
        text=walker.text,
        html=walker.html,
        attachments=tuple(attachments),
        headers=headers,
        parts=tuple(walker.records),
    )


def parse_message(
    raw: Optional[RawMessage],
    *,
    config: Optional[ParserConfig] = None,
    logger: Any = None,
) -> ParsedEmail:
    """Parse a raw RFC 5322 message.

    What:
      Return the structured :class:`ParsedEmail` for ``raw``.

    Why:
      This is the only entry point consumers need; it applies every decoding
      step and every default so renderers never handle missing fields.

    How:
      ``bytes`` input is read as UTF-8, falling back to Latin-1. Diagnostics go
      to ``logger``: a :class:`JsonLogger`, a :class:`logging.Logger`, or any
      object whose ``debug``/``info``/``warning``/``error`` accept keyword
      fields. The default is a JSON logger on ``stderr`` at
      ``config.log_level``. Should an unexpected error escape the pipeline,
      including one raised by the sink, it is logged and a record holding only
      the defaults is returned.

    Args:
      raw: Message text or bytes, CRLF or LF line endings.
      config: Parser tunables; :class:`ParserConfig` defaults when omitted.
      logger: Diagnostic sink chosen by the caller.

    Returns:
      The parsed message.
    """

    settings = config if config is not None else ParserConfig()
    fallback = get_logger("emlparse.parser", level=settings.log_level)
    sink = resolve_sink(logger, fallback)
    try:
        return _parse(_coerce_text(raw), settings, sink)
    except Exception as exc:
        _report_failure(sink, fallback, exc)
        return ParsedEmail(from_=settings.default_from, subject=settings.default_subject)


def _report_failure(sink: Any, fallback: Any, exc: Exception) -> None:
    """Log a parse failure, using ``fallback`` when ``sink`` itself fails."""

    try:
        sink.error("parse_failed", error=str(exc))
    except Exception as sink_exc:
        fallback.error("diagnostic_sink_failed", error=str(sink_exc), cause=str(exc))
