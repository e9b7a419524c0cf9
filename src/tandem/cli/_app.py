"""The command-line interface for tandem."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated, Any

import anyio
from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape

from tandem import __version__
from tandem.config import Config, ConfigError, LogLevel
from tandem.exceptions import TandemError
from tandem.supervisor import (
    ColorPolicy,
    ConcatenatedOutputSink,
    RunResult,
    Supervisor,
)
from tandem.utils import create_run_logger

from ._shared import ExitCode, exit_with_error

APP_HELP = "Run several shell commands side by side with prefixed output."


def build_cli_overrides(  # noqa: PLR0913
    *,
    color_policy: ColorPolicy | None = None,
    shell: str | None = None,
    kill_signal: str | None = None,
    no_color: bool = False,
    log_file: str | None = None,
    log_level: LogLevel | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect the flags that were actually given into a config overlay."""
    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    if color_policy is not None:
        overrides["color_policy"] = color_policy.value
    if shell is not None:
        overrides["shell"] = shell
    if kill_signal is not None:
        overrides["kill_signal"] = kill_signal
    if no_color:
        overrides["no_color"] = True

    logging_overrides: dict[str, str] = {}
    if log_file is not None:
        logging_overrides["file"] = log_file
    if log_level is not None:
        logging_overrides["level"] = log_level.value
    if logging_overrides:
        overrides["logging"] = logging_overrides

    return overrides


def _first_error(error: Exception) -> Exception:
    while isinstance(error, ExceptionGroup):
        error = error.exceptions[0]
    return error


def run_commands(
    commands: list[str],
    config: Config,
    *,
    console: Console | None = None,
    error_console: Console | None = None,
) -> RunResult:
    """Supervise ``commands`` to completion with the given configuration.

    Raises:
        TandemError: If the run fails for a reason other than a child's
            outcome.
        Exception: Any other failure inside the run, unwrapped from its
            exception group.
    """
    logger = create_run_logger(
        level=config.logging.level.value,
        log_format=config.logging.format.value,  # type: ignore[arg-type]
        log_file=config.logging.file,
    )
    sink = ConcatenatedOutputSink(console, error_console, no_color=config.no_color)
    supervisor = Supervisor(
        commands,
        output_sink=sink,
        shell=config.shell,
        color_policy=config.color_policy,
        kill_signal=config.signal,
        cwd=config.cwd,
        logger=logger,
    )

    failures: list[Exception] = []
    try:
        return anyio.run(supervisor.run)
    except* Exception as group:
        failures.append(_first_error(group))

    logger.error(
        "run_failed", error=str(failures[0]), error_type=type(failures[0]).__name__
    )
    raise failures[0]


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the tandem application.

    Args:
        console: Console for child stdout lines. Created if None.
        error_console: Console for stderr output. Created if None.
        exit_on_error: Whether cyclopts exits on parse errors.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="tandem",
        help=APP_HELP,
        help_on_error=True,
        version=__version__,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.default
    def _run(  # noqa: PLR0913  # pyright: ignore[reportUnusedFunction]
        *,
        cmd: Annotated[
            list[str],
            Parameter(name="--cmd", help="Shell command to run. Repeat for each command."),
        ],
        color_policy: Annotated[
            ColorPolicy | None,
            Parameter(help="Assign prefix colors by command text or by position."),
        ] = None,
        shell: Annotated[
            str | None,
            Parameter(help="Command interpreter used to run each command."),
        ] = None,
        kill_signal: Annotated[
            str | None,
            Parameter(help="Signal sent to every command on interrupt."),
        ] = None,
        no_color: Annotated[
            bool, Parameter(name="--no-color", help="Disable colored prefixes")
        ] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
        log_file: Annotated[
            str | None, Parameter(help="Write diagnostic logs to this file")
        ] = None,
        log_level: Annotated[
            LogLevel | None, Parameter(help="Diagnostic log level")
        ] = None,
    ) -> None:
        """Run every command concurrently and exit with the highest exit status.

        Args:
            cmd: Shell commands to run.
            color_policy: Prefix color assignment policy.
            shell: Command interpreter.
            kill_signal: Signal sent on interrupt.
            no_color: Disable colored prefixes.
            config: Explicit path to config file.
            log_file: Diagnostic log file.
            log_level: Diagnostic log level.
        """
        cli_overrides = build_cli_overrides(
            color_policy=color_policy,
            shell=shell,
            kill_signal=kill_signal,
            no_color=no_color,
            log_file=log_file,
            log_level=log_level,
        )

        try:
            loaded_config = Config.load(config_path=config, cli_overrides=cli_overrides)
        except (ConfigError, FileNotFoundError) as e:
            exit_with_error(escape(str(e)), ExitCode.CONFIG_ERROR, console=error_console)

        try:
            result = run_commands(
                cmd, loaded_config, console=console, error_console=error_console
            )
        except TandemError as e:
            exit_with_error(escape(str(e)), ExitCode.INTERNAL_ERROR, console=error_console)
        except Exception as e:  # noqa: BLE001
            message = f"internal error: {type(e).__name__}: {e}"
            exit_with_error(escape(message), ExitCode.INTERNAL_ERROR, console=error_console)

        raise SystemExit(result.status)

    return app


def main() -> None:
    """Default entrypoint for the `tandem` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
