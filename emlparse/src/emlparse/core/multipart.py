"""Boundary extraction and multipart body splitting."""
from __future__ import annotations

import re
from typing import List, Optional


_BOUNDARY_PARAM = re.compile(r"boundary\s*=\s*(?:\"([^\"]*)\"|([^;\s]+))", re.IGNORECASE)
_DELIMITER_LINE_END = re.compile(r"\A[ \t]*\r?\n")
_TRAILING_LINE_BREAK = re.compile(r"\r?\n\Z")


def extract_boundary(content_type: str) -> Optional[str]:
    """Return the ``boundary`` parameter of a multipart ``Content-Type``.

    ``None`` means the value is not multipart or carries no usable boundary,
    in which case the body is handled as a single part.

    >>> extract_boundary('multipart/mixed; boundary="XYZ"')
    'XYZ'
    """

    if not content_type or "multipart" not in content_type.lower():
        return None
    match = _BOUNDARY_PARAM.search(content_type)
    if match is None:
        return None
    value = match.group(1) if match.group(1) is not None else match.group(2)
    value = value.strip().strip("\"'")
    return value or None


def delimiter_pattern(boundary: str) -> "re.Pattern[str]":
    """Compile the literal ``--boundary`` delimiter.

    The boundary is escaped so characters such as ``+``, ``(`` or ``?`` match
    themselves. A delimiter must start a line and be followed by ``--``
    (closing delimiter) or the end of the line, so a boundary that prefixes a
    nested part's boundary does not split inside it.
    """

    return re.compile(r"^--" + re.escape(boundary) + r"(?=--|[ \t\r]*$)", re.MULTILINE)


def split_multipart(body: str, boundary: str) -> List[str]:
    """Split ``body`` into part segments on ``--boundary``.

    What:
      Return the segments between delimiters, each holding a part's header
      block, a blank line and its content.

    How:
      Split with :func:`delimiter_pattern`, drop the preamble (everything
      before the first delimiter), then drop segments that trim to nothing, to
      ``--``, or that begin with ``--`` (the closing delimiter followed by the
      epilogue). The rest of each delimiter line and the line break preceding
      the next delimiter belong to the delimiters and are removed.

    Args:
      body: Multipart body text.
      boundary: Boundary parameter, unescaped.

    Returns:
      Ordered part segments; empty when no delimiter occurs.
    """

    if not boundary:
        return []
    segments = delimiter_pattern(boundary).split(body)
    parts: List[str] = []
    for segment in segments[1:]:
        trimmed = segment.strip()
        if not trimmed or trimmed == "--" or trimmed.startswith("--"):
            continue
        segment = _DELIMITER_LINE_END.sub("", segment, count=1)
        segment = _TRAILING_LINE_BREAK.sub("", segment, count=1)
        parts.append(segment)
    return parts
