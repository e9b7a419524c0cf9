"""tandem configuration.

This module provides the public API for tandem configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from tandem.config import Config
    >>> config = Config.load()
    >>> config.kill_signal
    'SIGTERM'
"""

from tandem.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_FILENAME
from ._loader import (
    deep_merge,
    parse_env_value,
    parse_env_vars,
    read_toml_file,
)
from ._models import (
    Config,
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LoggingConfig,
    LogLevel,
    parse_signal,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILENAME",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "parse_env_value",
    "parse_env_vars",
    "parse_signal",
    "read_toml_file",
]
