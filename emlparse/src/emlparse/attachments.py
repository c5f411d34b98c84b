"""Helpers for consumers of parsed attachments.

What:
  Derive display and storage facts from an :class:`Attachment`: its file
  extension, whether it is an image, a ``data:`` URL for inline previews, a
  human-readable size, its decoded bytes, a filesystem-safe name, and a
  checksum.

Why:
  Every viewer of a :class:`ParsedEmail` needs the same small conversions.
  Keeping them next to the parser guarantees they agree with the payload
  representation it produces (base64 text, bare MIME type).

How:
  Pure functions over the attachment fields; base64 handling is delegated to
  :mod:`emlparse.core.encoding`.

Interfaces:
  :func:`file_extension`, :func:`is_image`, :func:`guess_mime_type`,
  :func:`data_url`, :func:`format_file_size`, :func:`decode_attachment`,
  :func:`safe_filename`, :func:`attachment_checksum`.
"""
from __future__ import annotations

import re
from typing import Dict

from .core.encoding import decode_base64, encode_base64
from .core.model import Attachment
from .utils.ids import checksum


IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp", "svg"})

_MIME_TYPES: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}

_SIZE_UNITS = ("B", "KB", "MB", "GB")
_UNSAFE_FILENAME = re.compile(r"[^\w.\- ]+")


def file_extension(filename: str) -> str:
    """Return the text after the last dot, or ``""`` when there is none."""

    if not filename:
        return ""
    head, dot, tail = filename.rpartition(".")
    return tail if dot else ""


def is_image(attachment: Attachment) -> bool:
    return file_extension(attachment.name).lower() in IMAGE_EXTENSIONS


def guess_mime_type(attachment: Attachment) -> str:
    """Prefer the declared type, then the extension table, then octet-stream."""

    if attachment.content_type:
        return attachment.content_type
    return _MIME_TYPES.get(file_extension(attachment.name).lower(), "application/octet-stream")


def decode_attachment(attachment: Attachment) -> bytes:
    """Return the attachment payload as bytes.

    Raises :class:`ValueError` when ``data`` is not valid base64, which only
    happens when the message declared ``base64`` for a corrupt body.
    """

    return decode_base64(attachment.data)


def data_url(attachment: Attachment) -> str:
    """Build a ``data:`` URL suitable for an inline preview.

    Payloads that are not valid base64 are encoded from their text so the URL
    is always well formed.
    """

    if not attachment.data:
        return ""
    payload = attachment.data
    try:
        decode_base64(payload)
    except ValueError:
        payload = encode_base64(payload.encode("utf-8"))
    return f"data:{guess_mime_type(attachment)};base64,{payload}"


def format_file_size(size: int) -> str:
    """Render ``size`` bytes as ``"0 B"``, ``"512 B"``, ``"1.5 KB"`` and so on."""

    if size <= 0:
        return "0 B"
    exponent = 0
    while exponent < len(_SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def safe_filename(name: str, *, fallback: str = "attachment") -> str:
    """Strip directory components and unusual characters from ``name``."""

    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_FILENAME.sub("_", base).strip(" .")
    return cleaned or fallback


def attachment_checksum(attachment: Attachment) -> str:
    """Return a ``sha256:`` digest of the decoded payload."""

    return checksum(decode_attachment(attachment))
