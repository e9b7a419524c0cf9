"""Shared CLI utilities.

This module provides common utilities used by the CLI:
- Standardized exit codes
- Console utilities for error handling
"""

from enum import IntEnum
from typing import Never

from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Exit codes tandem itself produces.

    A completed run exits with the aggregate status of its children instead.
    """

    SUCCESS = 0
    CONFIG_ERROR = 2
    INTERNAL_ERROR = 70


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", highlight=False, markup=True)
    raise SystemExit(code)
