"""Content-Transfer-Encoding decoders.

What:
  Decode message bodies declared as ``base64`` or ``quoted-printable`` and
  provide the base64 helpers used to normalise attachment payloads.

Why:
  Transfer encodings are where malformed mail most often breaks parsers. A
  failed decode must never abort the parse: the caller receives the original
  text and a diagnostic instead of an exception.

How:
  Quoted-printable escapes are rebuilt into a ``bytearray`` (soft line breaks
  removed first) and base64 bodies are decoded after whitespace removal with
  forgiving padding. Decoded bytes become text by trying UTF-8 and falling back
  to Latin-1, which maps every byte to the code point of the same value. For
  quoted-printable text that fallback applies to the escapes only, so literal
  non-ASCII characters survive.

Interfaces:
  :func:`decode_content`, :func:`decode_base64`, :func:`encode_base64`,
  :func:`decode_quoted_printable`, :func:`quoted_printable_bytes`,
  :func:`bytes_to_text`.

Invariants & Safety:
  - :func:`decode_quoted_printable` is the identity on text without ``=``.
  - ``decode_base64(encode_base64(data)) == data`` for all byte strings.
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Optional

from ..utils.logging import get_logger, resolve_sink


_LOGGER = get_logger("emlparse.encoding")

_SOFT_BREAK = re.compile(r"=\r?\n")
_HEX_ESCAPE = re.compile(r"=([0-9A-Fa-f]{2})")
_WHITESPACE = re.compile(r"\s+")

BASE64 = "base64"
QUOTED_PRINTABLE = "quoted-printable"


def bytes_to_text(data: bytes) -> str:
    """Read ``data`` as UTF-8, falling back to one code point per byte."""

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def strip_whitespace(text: str) -> str:
    return _WHITESPACE.sub("", text)


def quoted_printable_bytes(text: str) -> bytes:
    """Decode quoted-printable ``text`` into raw bytes.

    Soft line breaks (``=`` followed by a line ending) are removed, then every
    ``=XX`` escape becomes the byte ``0xXX``. Malformed escapes such as ``=ZZ``
    or a trailing ``=`` are kept literally.
    """

    text = _SOFT_BREAK.sub("", text)
    buffer = bytearray()
    position = 0
    for match in _HEX_ESCAPE.finditer(text):
        buffer += text[position:match.start()].encode("utf-8", errors="replace")
        buffer.append(int(match.group(1), 16))
        position = match.end()
    buffer += text[position:].encode("utf-8", errors="replace")
    return bytes(buffer)


def decode_quoted_printable(text: str) -> str:
    """Decode quoted-printable ``text`` into a string.

    >>> decode_quoted_printable("Caf=E9")
    'Café'
    >>> decode_quoted_printable("Caf=C3=A9")
    'Café'

    When the escapes do not form UTF-8, each ``=XX`` becomes the character of
    the same code point and literal characters are kept as they are.

    >>> decode_quoted_printable("été =E9")
    'été é'
    """

    if "=" not in text:
        return text
    try:
        return quoted_printable_bytes(text).decode("utf-8")
    except UnicodeDecodeError:
        unfolded = _SOFT_BREAK.sub("", text)
        return _HEX_ESCAPE.sub(lambda match: chr(int(match.group(1), 16)), unfolded)


def decode_base64(text: str) -> bytes:
    """Decode base64 ``text`` after removing all whitespace.

    Missing padding is tolerated. Raises :class:`ValueError` (via
    :class:`binascii.Error`) when the payload is not valid base64.
    """

    cleaned = strip_whitespace(text).rstrip("=")
    if len(cleaned) % 4 == 1:
        raise binascii.Error("invalid base64 length")
    padded = cleaned + "=" * (-len(cleaned) % 4)
    return base64.b64decode(padded, validate=True)


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def normalise_encoding(encoding: Optional[str]) -> str:
    return (encoding or "").strip().lower()


def decode_content(body: str, encoding: Optional[str], *, logger: Any = None) -> str:
    """Decode ``body`` according to its ``Content-Transfer-Encoding``.

    What:
      Return the textual content of a body declared with ``encoding``.

    Why:
      Bodies are rendered as text by consumers; both supported encodings end up
      as a string. Unknown or identity encodings (``7bit``, ``8bit``,
      ``binary``) pass through untouched.

    How:
      ``base64`` bodies are decoded with :func:`decode_base64`; a failure is
      reported as a ``WARN`` diagnostic and the original text is returned.
      ``quoted-printable`` bodies go through :func:`decode_quoted_printable`.

    Args:
      body: Raw body text.
      encoding: Header value, possibly empty or mixed case.
      logger: Diagnostic sink; the module logger when omitted.

    Returns:
      Decoded text, or ``body`` itself when no decoding applies or it failed.
    """

    sink = resolve_sink(logger, _LOGGER)
    kind = normalise_encoding(encoding)
    if not body:
        return body
    if kind == BASE64:
        try:
            return bytes_to_text(decode_base64(body))
        except ValueError as exc:
            sink.warning("base64_decode_failed", error=str(exc), length=len(body))
            return body
    if kind == QUOTED_PRINTABLE:
        return decode_quoted_printable(body)
    return body
