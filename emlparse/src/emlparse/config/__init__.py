"""emlparse configuration package.

What:
  Provide the import surface for configuration loading and the pydantic schema
  used by the parser and the CLI.

Interfaces:
  - load_config / get_config / reset_config / parse_config: resolve and cache
    ``emlparse.yaml``.
  - ParserConfig: validated parser tunables.
  - ConfigLoadError: raised for unreadable or invalid configuration files.
"""

from ..errors import ConfigLoadError
from .loader import get_config, load_config, parse_config, reset_config
from .schema import ParserConfig

__all__ = [
    "load_config",
    "get_config",
    "reset_config",
    "parse_config",
    "ParserConfig",
    "ConfigLoadError",
]
