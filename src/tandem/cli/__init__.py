"""The tandem command-line interface."""

from ._app import build_cli_overrides, create_app, main, run_commands
from ._shared import ExitCode, exit_with_error, get_error_console

__all__ = [
    "ExitCode",
    "build_cli_overrides",
    "create_app",
    "exit_with_error",
    "get_error_console",
    "main",
    "run_commands",
]
