"""Stable checksums for extracted attachment payloads.

What:
  Provide a helper for computing namespaced SHA-256 digests used by the CLI and
  attachment helpers to identify payloads.

Why:
  The same attachment often appears in several messages of a thread; a stable
  digest lets callers deduplicate extracted files without comparing bytes.

How:
  Wraps ``hashlib`` with a consistent ``sha256:`` prefix.

Interfaces:
  :func:`checksum`.
"""
from __future__ import annotations

import hashlib


def checksum(data: bytes) -> str:
    """Compute a namespaced SHA-256 digest for ``data``.

    Args:
      data: Bytes to hash.

    Returns:
      Hex-encoded digest string prefixed with ``sha256:``.
    """

    return f"sha256:{hashlib.sha256(data).hexdigest()}"
