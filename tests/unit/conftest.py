"""Pytest fixtures for unit tests that inspect parser diagnostics.

What:
  Expose a ``diagnostics`` fixture: a :class:`JsonLogger` writing every level
  to an in-memory stream, plus a helper returning the decoded entries.

Why:
  Decode failures are reported rather than raised, so tests assert on the
  emitted diagnostics to prove a failure was noticed.
"""

import io
import json
from typing import Any, Dict, List

import pytest

from emlparse.utils.logging import JsonLogger


class CapturedLogger(JsonLogger):
    """JSON logger keeping its output in memory."""

    def entries(self) -> List[Dict[str, Any]]:
        return [json.loads(line) for line in self.stream.getvalue().splitlines() if line]

    def messages(self) -> List[str]:
        return [entry["msg"] for entry in self.entries()]


@pytest.fixture
def diagnostics() -> CapturedLogger:
    return CapturedLogger(stream=io.StringIO(), component="test", level="DEBUG")
