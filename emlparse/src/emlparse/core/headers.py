"""Header block parsing and header value decoding.

What:
  Split raw message text into lines, read a header block into a
  :class:`HeaderMap`, decode RFC 2047 encoded words, and normalise address
  fields for display.

Why:
  The same header logic runs for the top-level message and for every MIME
  part, so it lives in one place with one set of edge-case rules.

How:
  Lines are split on CRLF or LF. A header starts on a line matching
  ``^[A-Za-z-]+:``; a line starting with whitespace continues the current
  header (RFC 5322 folding); the first blank line ends the block. Encoded
  words are replaced token by token with :func:`re.sub`.

Interfaces:
  :func:`split_lines`, :func:`parse_header_block`,
  :func:`decode_encoded_words`, :func:`normalize_address_field`.

Invariants & Safety:
  - Keys are lowercased; a later occurrence of a header overwrites an earlier
    one.
  - Malformed lines are dropped silently; nothing here raises on bad input.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Sequence, Tuple

from ..utils.logging import get_logger, resolve_sink
from .encoding import bytes_to_text, decode_base64, decode_quoted_printable
from .model import HeaderMap


_LOGGER = get_logger("emlparse.headers")

_LINE_BREAK = re.compile(r"\r?\n")
_HEADER_START = re.compile(r"^[A-Za-z-]+:")
_ENCODED_WORD = re.compile(r"=\?([^?]+)\?([BQ])\?([^?]*)\?=", re.IGNORECASE)


def split_lines(text: str) -> List[str]:
    """Split ``text`` on CRLF or LF line endings."""

    return _LINE_BREAK.split(text)


def parse_header_block(lines: Sequence[str]) -> Tuple[HeaderMap, int]:
    """Read the header block at the top of ``lines``.

    What:
      Collect headers until the first blank line.

    How:
      A header line is split at its first colon; key and value are trimmed and
      the key lowercased. Lines beginning with a space or tab append
      ``" " + line.strip()`` to the header seen last. Any other line is
      ignored.

    Args:
      lines: Message or part lines, as produced by :func:`split_lines`.

    Returns:
      ``(headers, body_start)`` where ``body_start`` indexes the first body
      line. Without a blank line the whole input is headers and
      ``body_start == len(lines)``.
    """

    headers: Dict[str, str] = {}
    current = ""
    for index, line in enumerate(lines):
        if not line.strip():
            return HeaderMap(headers), index + 1
        if _HEADER_START.match(line):
            name, _, value = line.partition(":")
            current = name.strip().lower()
            headers[current] = value.strip()
        elif line[:1] in (" ", "\t") and current:
            headers[current] += " " + line.strip()
    return HeaderMap(headers), len(lines)


def decode_encoded_words(value: str, *, logger: Any = None) -> str:
    """Replace every RFC 2047 encoded word in ``value``.

    ``B`` words are base64, ``Q`` words are quoted-printable with ``_`` standing
    for a space. A word that fails to decode is left as it appeared. The
    declared charset is not used for transcoding; decoded bytes are read as
    UTF-8 with a Latin-1 fallback.

    >>> decode_encoded_words("=?UTF-8?B?SGVsbG8=?= world")
    'Hello world'
    """

    if not value or "=?" not in value:
        return value or ""
    sink = resolve_sink(logger, _LOGGER)

    def _replace(match: "re.Match[str]") -> str:
        charset, marker, payload = match.group(1), match.group(2).upper(), match.group(3)
        try:
            if marker == "B":
                decoded = bytes_to_text(decode_base64(payload))
            else:
                decoded = decode_quoted_printable(payload.replace("_", " "))
        except ValueError as exc:
            sink.warning("encoded_word_decode_failed", charset=charset, error=str(exc))
            return match.group(0)
        sink.debug("encoded_word_decoded", charset=charset, marker=marker)
        return decoded

    return _ENCODED_WORD.sub(_replace, value)


def normalize_address_field(value: str, *, logger: Any = None) -> str:
    """Decode an address header (``From``/``To``/``Cc``) for display.

    Commas split the list without regard to quoted display names, so
    ``"Doe, Jane" <jane@x.com>`` becomes two pieces. Empty input yields an
    empty string.
    """

    if not value:
        return ""
    decoded = decode_encoded_words(value, logger=logger)
    if "," in decoded:
        return ", ".join(piece.strip() for piece in decoded.split(","))
    return decoded.strip()
