"""MIME part parsing, classification, decoding and attachment filtering.

What:
  Turn one part segment into a :class:`MimePart`, decide whether it is an
  attachment or an inline body, decode it into a :data:`DecodedPart`, and
  filter the collected attachment candidates.

Why:
  Real-world mail mixes genuine attachments with structural leftovers such as
  signature blocks or empty boundary sections. Classification and filtering
  are heuristics, so they are kept together and driven by
  :class:`~emlparse.config.schema.ParserConfig` thresholds.

How:
  A part is an attachment when its disposition says ``attachment``, when the
  disposition names a file without being ``inline``, or when a non-text
  content type carries ``name=``. Attachment payloads are normalised to base64
  text; inline bodies go through :func:`decode_content`.

Interfaces:
  :func:`parse_mime_part`, :func:`classify_part`, :func:`extract_filename`,
  :func:`decode_part`, :func:`filter_attachments`.

Invariants & Safety:
  - Every attachment payload is base64 text regardless of its original
    transfer encoding.
  - A nameless (or placeholder-named) attachment whose raw body is below
    ``min_attachment_size`` characters is discarded before decoding.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional
from urllib.parse import unquote

from ..config.schema import ParserConfig
from ..utils.logging import get_logger, resolve_sink
from .encoding import (
    BASE64,
    QUOTED_PRINTABLE,
    decode_content,
    encode_base64,
    normalise_encoding,
    quoted_printable_bytes,
    strip_whitespace,
)
from .headers import decode_encoded_words, parse_header_block, split_lines
from .model import (
    Attachment,
    AttachmentCandidate,
    DecodedPart,
    HtmlBody,
    MimePart,
    TextBody,
)


_LOGGER = get_logger("emlparse.parts")

_FILENAME_PARAM = re.compile(r"filename\*?\s*=\s*(?:\"([^\"]*)\"|([^;]+))", re.IGNORECASE)
_NAME_PARAM = re.compile(r"name\*?\s*=\s*(?:\"([^\"]*)\"|([^;]+))", re.IGNORECASE)
_RFC2231_UTF8 = re.compile(r"UTF-8'[A-Za-z0-9-]*'(.*)$", re.IGNORECASE | re.DOTALL)


def parse_mime_part(segment: str) -> MimePart:
    """Split a part segment into its headers and raw body."""

    lines = split_lines(segment)
    headers, body_start = parse_header_block(lines)
    return MimePart(headers=headers, raw_body="\n".join(lines[body_start:]))


def classify_part(part: MimePart) -> bool:
    """Return ``True`` when ``part`` should be treated as an attachment."""

    disposition = part.content_disposition.lower()
    content_type = part.content_type.lower()
    if "attachment" in disposition:
        return True
    if "filename" in disposition and "inline" not in disposition:
        return True
    return bool(content_type) and "text/" not in content_type and "name=" in content_type


def _parameter(pattern: "re.Pattern[str]", value: str) -> str:
    match = pattern.search(value)
    if match is None:
        return ""
    raw = match.group(1) if match.group(1) is not None else match.group(2)
    return raw.strip().strip("\"'").strip()


def extract_filename(part: MimePart, *, logger: Any = None) -> str:
    """Return the attachment name declared by ``part`` or ``""``.

    The ``filename`` parameter of ``Content-Disposition`` wins over the
    ``name`` parameter of ``Content-Type``. A ``UTF-8''`` prefix (RFC 2231)
    marks a percent-encoded value; RFC 2047 encoded words are decoded too.
    Continued parameters (``filename*0*=``) are not reassembled.
    """

    name = _parameter(_FILENAME_PARAM, part.content_disposition)
    if not name:
        name = _parameter(_NAME_PARAM, part.content_type)
    if not name:
        return ""
    extended = _RFC2231_UTF8.search(name)
    if extended is not None:
        name = unquote(extended.group(1), encoding="utf-8", errors="replace")
    return decode_encoded_words(name, logger=logger).strip()


def _attachment_data(raw_body: str, encoding: str) -> str:
    if encoding == BASE64:
        return strip_whitespace(raw_body)
    if encoding == QUOTED_PRINTABLE:
        return encode_base64(quoted_printable_bytes(raw_body))
    return encode_base64(raw_body.encode("utf-8", errors="replace"))


def decode_part(
    part: MimePart,
    *,
    config: Optional[ParserConfig] = None,
    logger: Any = None,
) -> Optional[DecodedPart]:
    """Classify and decode a single part.

    What:
      Produce exactly one :data:`DecodedPart` for ``part``, or ``None`` when
      the part is a nameless fragment too small to be a real attachment.

    How:
      Attachments keep the bare content type (parameters removed, the
      configured default when absent) and a base64 payload: ``base64`` bodies
      only lose their whitespace, ``quoted-printable`` bodies are decoded and
      re-encoded, other bodies are encoded from their text. Inline parts are
      decoded with :func:`decode_content` and tagged :class:`HtmlBody` when the
      content type mentions ``text/html``, else :class:`TextBody`.

    Args:
      part: Parsed part.
      config: Parser thresholds; defaults when omitted.
      logger: Diagnostic sink; the module logger when omitted.

    Returns:
      The decoded part, or ``None`` if it was discarded.
    """

    settings = config if config is not None else ParserConfig()
    sink = resolve_sink(logger, _LOGGER)
    encoding = normalise_encoding(part.transfer_encoding)

    if classify_part(part):
        name = extract_filename(part, logger=sink)
        if not name or name == settings.placeholder_name:
            if len(part.raw_body) < settings.min_attachment_size:
                sink.debug("attachment_discarded", length=len(part.raw_body))
                return None
        data = _attachment_data(part.raw_body, encoding)
        content_type = part.content_type.split(";")[0].strip() or settings.default_content_type
        return AttachmentCandidate(
            name=name or settings.placeholder_name,
            content_type=content_type,
            data=data,
            size=len(data),
        )

    content = decode_content(part.raw_body, encoding, logger=sink)
    if "text/html" in part.content_type.lower():
        return HtmlBody(content=content)
    return TextBody(content=content)


def filter_attachments(
    candidates: Iterable[AttachmentCandidate],
    *,
    placeholder_name: str = "attachment",
    min_size: int = 500,
) -> List[Attachment]:
    """Drop candidates that look like parsing artefacts.

    A candidate is dropped when its name equals ``placeholder_name``
    (case-insensitively) and it is smaller than ``min_size``, when its data is
    empty, or when its name is blank.
    """

    kept: List[Attachment] = []
    placeholder = placeholder_name.lower()
    for candidate in candidates:
        if candidate.name.lower() == placeholder and candidate.size < min_size:
            continue
        if not candidate.data:
            continue
        if not candidate.name.strip():
            continue
        kept.append(Attachment.from_candidate(candidate))
    return kept
