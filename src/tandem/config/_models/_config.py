# pyright: reportExplicitAny=false, reportAny=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing tandem configuration values.
"""

from pathlib import Path
from signal import Signals
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tandem.config._defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_FILENAME
from tandem.config._loader import deep_merge, parse_env_vars, read_toml_file
from tandem.config._models._common import ConfigSource, ConfigSourceName
from tandem.config._models._logging import LoggingConfig
from tandem.exceptions import ConfigValidationError
from tandem.supervisor import ColorPolicy


def parse_signal(value: object) -> Signals:
    """Parse a signal given as a name (``SIGTERM``, ``term``) or number.

    Raises:
        ValueError: If the value does not name a known signal.
    """
    if isinstance(value, Signals):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Signals(value)
        except ValueError:
            pass
    if isinstance(value, str):
        name = value.strip().upper()
        if name.isdigit():
            return parse_signal(int(name))
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        try:
            return Signals[name]
        except KeyError:
            pass
    msg = f"unknown signal: {value!r}"
    raise ValueError(msg)


class Config(BaseModel):
    """Configuration container with typed access.

    Use factory methods to create instances: from_dict(), from_file(), or
    load() for the full precedence chain (defaults -> file -> env -> cli).

    Attributes:
        shell: Command interpreter used to run every command.
        color_policy: How prefix colors are assigned.
        kill_signal: Name of the signal sent to children on cancellation.
        no_color: Render prefixes without color.
        cwd: Working directory for children (inherit if None).
        logging: Logging configuration section.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    shell: str = "/bin/sh"
    color_policy: ColorPolicy = ColorPolicy.COMMAND
    kill_signal: str = "SIGTERM"
    no_color: bool = False
    cwd: Path | None = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sources: tuple[ConfigSource, ...] = Field(default=(), exclude=True, repr=False)

    @field_validator("kill_signal", mode="before")
    @classmethod
    def _normalize_kill_signal(cls, value: object) -> str:
        return parse_signal(value).name

    @field_validator("shell")
    @classmethod
    def _require_shell(cls, value: str) -> str:
        if not value.strip():
            msg = "shell must not be empty"
            raise ValueError(msg)
        return value

    @property
    def signal(self) -> Signals:
        """Return the kill signal as a ``signal.Signals`` member."""
        return Signals[self.kill_signal]

    @classmethod
    def _validate(
        cls,
        data: dict[str, Any],
        *,
        sources: tuple[ConfigSource, ...] = (),
        source: str | None = None,
    ) -> Self:
        """Validate merged data, translating pydantic errors.

        Raises:
            ConfigValidationError: If any value is invalid.
        """
        try:
            return cls.model_validate({**data, "sources": sources})
        except ValidationError as e:
            error = e.errors()[0]
            key = ".".join(str(part) for part in error["loc"])
            msg = f"Invalid value for '{key}': {error['msg']}"
            raise ConfigValidationError(
                msg,
                key=key,
                value=error.get("input"),
                expected=error["type"],
                source=source,
            ) from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return cls._validate(deep_merge(DEFAULT_CONFIG, data))

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file merged over the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        data = read_toml_file(path)
        source = ConfigSource(
            name=ConfigSourceName.FILE, path=path, exists=True, values=data
        )
        return cls._validate(
            deep_merge(DEFAULT_CONFIG, data), sources=(source,), source=str(path)
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        search_dir: Path | None = None,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Precedence, lowest to highest: defaults, config file, environment,
        CLI overrides. The config file is ``config_path`` when given (it must
        exist), otherwise ``tandem.toml`` in ``search_dir`` if present.

        Args:
            config_path: Explicit config file (``--config``).
            search_dir: Directory searched for tandem.toml (cwd if None).
            include_env: Include TANDEM_* environment variables.
            cli_overrides: Values given on the command line.

        Returns:
            Merged configuration object.

        Raises:
            FileNotFoundError: If an explicit config_path does not exist.
            ConfigLoadError: If the config file cannot be parsed.
            ConfigValidationError: If merged config fails validation.
        """
        loaded: list[ConfigSource] = [
            ConfigSource(
                name=ConfigSourceName.DEFAULT,
                path=None,
                exists=True,
                values=DEFAULT_CONFIG,
            )
        ]

        file_path = config_path
        if file_path is None:
            candidate = (search_dir or Path.cwd()) / DEFAULT_CONFIG_FILENAME
            file_path = candidate if candidate.is_file() else None
        elif not file_path.exists():
            msg = f"Config file not found: {file_path}"
            raise FileNotFoundError(msg)

        if file_path is not None:
            loaded.append(
                ConfigSource(
                    name=ConfigSourceName.FILE,
                    path=file_path,
                    exists=True,
                    values=read_toml_file(file_path),
                )
            )

        if include_env:
            env_values = parse_env_vars()
            loaded.append(
                ConfigSource(
                    name=ConfigSourceName.ENV,
                    path=None,
                    exists=bool(env_values),
                    values=env_values,
                )
            )

        if cli_overrides:
            loaded.append(
                ConfigSource(
                    name=ConfigSourceName.CLI,
                    path=None,
                    exists=True,
                    values=cli_overrides,
                )
            )

        merged: dict[str, Any] = {}
        for source in loaded:
            if source.values:
                merged = deep_merge(merged, source.values)

        # Sources are reported highest precedence first
        return cls._validate(
            merged,
            sources=tuple(reversed(loaded)),
            source=str(file_path) if file_path is not None else None,
        )
