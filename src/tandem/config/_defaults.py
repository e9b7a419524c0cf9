"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.
"""

from typing import Any

DEFAULT_CONFIG_FILENAME = "tandem.toml"

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "shell": "/bin/sh",
    "color_policy": "command",
    "kill_signal": "SIGTERM",
    "no_color": False,
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
}
