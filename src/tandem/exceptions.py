"""tandem exceptions."""

from pathlib import Path
from typing import Any


class TandemError(Exception):
    """Base exception for tandem errors."""


class ConfigError(TandemError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(TandemError):
    """Base exception for process supervision errors."""


class SpawnError(SupervisorError):
    """Raised when the command interpreter cannot be launched.

    Attributes:
        command: The command string that could not be started.
        index: Launch index of the command.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        index: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and launch context.

        Args:
            message: Human-readable error message.
            command: The command string that could not be started.
            index: Launch index of the command.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.command: str | None = command
        self.index: int | None = index
        self.cause: Exception | None = cause


class KillError(SupervisorError):
    """Raised when a kill request cannot be delivered to a child.

    Attributes:
        pid: Process ID of the child.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        pid: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            pid: Process ID of the child.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.pid: int | None = pid
        self.cause: Exception | None = cause


class ChannelClosedError(SupervisorError):
    """Raised when the event channel between pumps and aggregator closes early.

    The aggregator must outlive every pump, so this always indicates a bug.
    """
