"""Pytest configuration shared by every emlparse suite.

What:
  Establish project import paths and keep the configuration cache and
  environment deterministic for every test.

Why:
  Tests must exercise the source tree rather than an installed wheel, and the
  configuration loader caches globally, so one test's ``emlparse.yaml`` must
  never leak into another.

How:
  Prepend ``emlparse/src`` to ``sys.path`` when present, expose the fixture
  directory, and reset the configuration cache around each test while removing
  ``EMLPARSE_CONFIG_PATH`` from the environment.

Interfaces:
  :func:`isolated_config` (autouse fixture), :func:`data_dir` (fixture).
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "emlparse" / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

import pytest

from emlparse.config.loader import reset_config

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run every test without ambient configuration.

    Removes the environment override, moves the working directory to an empty
    temporary folder so ``./emlparse.yaml`` is never picked up, and clears the
    loader cache before and after the test.
    """

    monkeypatch.delenv("EMLPARSE_CONFIG_PATH", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    reset_config()
    try:
        yield
    finally:
        reset_config()


@pytest.fixture
def data_dir() -> Path:
    """Return the directory holding the sample ``.eml`` files."""

    return DATA_DIR
