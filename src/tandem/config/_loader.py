# pyright: reportAny=false, reportExplicitAny=false
"""Reading ``tandem.toml`` and ``TANDEM_*`` variables into plain dictionaries."""

import copy
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from tandem.exceptions import ConfigLoadError

ENV_PREFIX = "TANDEM_"


def read_toml_file(path: Path) -> dict[str, Any]:
    """Parse a TOML config file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file is not valid TOML.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(msg, path=path, line=e.lineno, column=e.colno) from e


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` overlaid with ``override``; neither input is modified.

    Tables present on both sides are merged key by key. Any other value from
    ``override`` replaces the one in ``base``.
    """
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def parse_env_value(value: str) -> Any:
    """Convert a raw environment string to ``bool``, ``int`` or ``str``.

    Only ``true`` and ``false`` are booleans, so numeric values such as a
    signal number stay integers. Pydantic still accepts 0 and 1 for booleans.
    """
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Collect prefixed environment variables as a nested config overlay.

    ``TANDEM_KILL_SIGNAL`` sets ``kill_signal``; a double underscore
    descends into a table, so ``TANDEM_LOGGING__LEVEL`` sets
    ``logging.level``.
    """
    result: dict[str, Any] = {}
    source = os.environ if environ is None else environ

    for name, raw in source.items():
        if not name.startswith(prefix) or name == prefix:
            continue
        *tables, key = name[len(prefix) :].lower().split("__")
        target = result
        for table in tables:
            if not isinstance(target.get(table), dict):
                target[table] = {}
            target = target[table]
        target[key] = parse_env_value(raw)

    return result
