"""Loaders for the optional emlparse configuration file.

What:
  Locate, parse, validate, and cache ``emlparse.yaml`` so the CLI and library
  callers share one set of parser tunables.

Why:
  Most users never write a configuration file; the parser must behave
  identically with or without one. When a file is present it is user input and
  must be validated strictly before it can influence parsing.

How:
  Resolve candidate locations from an explicit argument, the
  ``EMLPARSE_CONFIG_PATH`` environment variable, and well-known defaults. Parse
  the first existing file with :func:`yaml.safe_load`, validate it with
  :class:`ParserConfig`, and cache the result. Fall back to the model defaults
  when nothing is found.

Interfaces:
  :func:`load_config`, :func:`get_config`, :func:`reset_config`,
  :func:`parse_config`.

Invariants:
  - An explicitly requested path that does not exist is an error; missing
    default locations are not.
  - All failures surface as :class:`ConfigLoadError` with path context.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError as _PydanticValidationError

from ..errors import ConfigLoadError
from .schema import ParserConfig


_CONFIG_ENV = "EMLPARSE_CONFIG_PATH"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("emlparse.yaml"),
    Path("~/.config/emlparse/config.yaml"),
)
_CONFIG_CACHE: Optional[Tuple[Optional[Path], ParserConfig]] = None


def _candidate_paths() -> Iterable[Path]:
    """Yield implicit configuration locations in priority order.

    The environment override comes first, followed by the default locations.
    Paths are expanded and deduplicated while preserving precedence.
    """

    seen: set[Path] = set()
    env_path = os.environ.get(_CONFIG_ENV)
    if env_path:
        candidate = Path(env_path).expanduser()
        seen.add(candidate)
        yield candidate
    for default in _DEFAULT_LOCATIONS:
        candidate = default.expanduser()
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def parse_config(text: str, source: str = "<string>") -> ParserConfig:
    """Parse and validate configuration ``text``.

    What:
      Convert YAML text into a validated :class:`ParserConfig`.

    How:
      Decode with :func:`yaml.safe_load`, require a mapping at the top level
      (an empty document yields the defaults), then validate with
      :meth:`ParserConfig.model_validate`.

    Args:
      text: Raw YAML contents.
      source: Human-readable origin used in error messages.

    Returns:
      The validated configuration.

    Raises:
      ConfigLoadError: If the YAML is malformed, not a mapping, or fails
        schema validation.
    """

    try:
        payload: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in {source}: {exc}") from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigLoadError(f"{source} must contain a mapping at the top-level")
    try:
        return ParserConfig.model_validate(payload)
    except _PydanticValidationError as exc:
        raise ConfigLoadError(f"Invalid configuration in {source}: {exc}") from exc


def _load_from_path(path: Path) -> ParserConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigLoadError(f"Configuration file missing: {path}") from exc
    except OSError as exc:  # pragma: no cover - filesystem surface
        raise ConfigLoadError(f"Unable to read configuration file {path}: {exc}") from exc
    return parse_config(text, str(path))


def load_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
) -> ParserConfig:
    """Resolve, parse, and cache the parser configuration.

    What:
      Return the configuration from ``path`` when given, otherwise from the
      first implicit location that exists, otherwise the built-in defaults.

    Why:
      The CLI loads configuration once per invocation while tests need
      deterministic refreshes; ``reload`` bypasses the cache for the latter.

    Args:
      path: Optional explicit configuration file.
      reload: When ``True`` forces a fresh load bypassing the cache.

    Returns:
      The validated configuration.

    Raises:
      ConfigLoadError: If the selected file cannot be read or validated.
    """

    global _CONFIG_CACHE

    requested = Path(path).expanduser() if isinstance(path, (str, Path)) else None
    if not reload and _CONFIG_CACHE is not None:
        cached_path, cached_config = _CONFIG_CACHE
        if requested is None or cached_path == requested:
            return cached_config

    if requested is not None:
        config = _load_from_path(requested)
        _CONFIG_CACHE = (requested, config)
        return config

    for candidate in _candidate_paths():
        if candidate.is_file():
            config = _load_from_path(candidate)
            _CONFIG_CACHE = (candidate, config)
            return config

    config = ParserConfig()
    _CONFIG_CACHE = (None, config)
    return config


def get_config() -> ParserConfig:
    """Return the cached configuration, loading it on demand."""

    if _CONFIG_CACHE is None:
        return load_config()
    return _CONFIG_CACHE[1]


def reset_config() -> None:
    """Clear the cached configuration so the next access reloads it."""

    global _CONFIG_CACHE
    _CONFIG_CACHE = None
