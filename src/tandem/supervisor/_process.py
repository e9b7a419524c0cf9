"""Child process handle for one launched command.

This module spawns a launch spec through a command interpreter and exposes the
child's output streams, its exit outcome, and a best-effort kill.

Key design points:
- The command runs as ``<shell> -c <command>`` so shell operators work
- stdin is /dev/null; stdout and stderr are piped
- The child gets its own session, so a terminal Ctrl-C reaches only the
  supervisor and a kill can target the child's whole process group
"""

import os
import signal
import subprocess
from collections.abc import Mapping
from pathlib import Path
from types import TracebackType
from typing import Self, final

import anyio
import anyio.abc

from tandem.exceptions import KillError, SpawnError

from ._models import Exited, LaunchSpec, Outcome, Signaled

DEFAULT_SHELL = "/bin/sh"
EXIT_POLL_INTERVAL = 0.05


def describe_signal(signum: int) -> str:
    """Return the symbolic name of a signal number, e.g. ``SIGTERM``."""
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


def outcome_from_returncode(returncode: int) -> Outcome:
    """Translate a subprocess return code into an outcome.

    Negative return codes mean the child was terminated by that signal and
    carry no exit status.
    """
    if returncode < 0:
        return Signaled(describe_signal(-returncode))
    return Exited(returncode)


@final
class ChildProcess:
    """A spawned shell subprocess.

    Use :func:`spawn` to create instances. The handle is an async context
    manager; leaving it closes the pipes and reaps the child.
    """

    __slots__ = ("_process", "spec")

    def __init__(self, spec: LaunchSpec, process: anyio.abc.Process) -> None:
        self.spec = spec
        self._process = process

    @property
    def pid(self) -> int:
        """Return the process ID of the command interpreter."""
        return self._process.pid

    @property
    def stdout(self) -> anyio.abc.ByteReceiveStream | None:
        """Return the child's stdout byte stream."""
        return self._process.stdout

    @property
    def stderr(self) -> anyio.abc.ByteReceiveStream | None:
        """Return the child's stderr byte stream."""
        return self._process.stderr

    @property
    def returncode(self) -> int | None:
        """Return the raw return code, or None while the child is running."""
        return self._process.returncode

    async def wait(self) -> Outcome:
        """Wait for the child to exit and return its outcome.

        Only the interpreter's own exit is awaited. Background processes that
        still hold its pipes open do not delay the result.
        """
        # asyncio resolves Process.wait() only after every pipe has closed
        while (returncode := self._process.returncode) is None:
            await anyio.sleep(EXIT_POLL_INTERVAL)
        return outcome_from_returncode(returncode)

    def kill(self, sig: signal.Signals = signal.SIGTERM) -> None:
        """Send ``sig`` to the child's process group.

        Returns as soon as the signal is delivered; await :meth:`wait` to know
        the child has actually died. A child that is already gone is not an
        error.

        Args:
            sig: Signal to deliver.

        Raises:
            KillError: If the signal cannot be delivered.
        """
        try:
            os.killpg(self.pid, sig)
        except ProcessLookupError:
            return
        except OSError:
            # Fall back to signalling just the interpreter
            try:
                self._process.send_signal(sig)
            except ProcessLookupError:
                return
            except OSError as e:
                msg = f"Failed to send {sig.name} to pid {self.pid}: {e}"
                raise KillError(msg, pid=self.pid, cause=e) from e

    async def aclose(self) -> None:
        """Close the pipes and wait for the child to exit."""
        await self._process.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


async def spawn(
    spec: LaunchSpec,
    *,
    shell: str = DEFAULT_SHELL,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ChildProcess:
    """Start a launch spec as a subprocess.

    Args:
        spec: The command to run.
        shell: Command interpreter, invoked as ``<shell> -c <command>``.
        cwd: Working directory for the child.
        env: Additional environment variables for the child.

    Returns:
        A handle to the running child.

    Raises:
        SpawnError: If the interpreter cannot be launched.
    """
    full_env: dict[str, str] | None = None
    if env:
        full_env = {**os.environ, **env}

    try:
        process = await anyio.open_process(
            [shell, "-c", spec.command],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=full_env,
            start_new_session=True,
        )
    except OSError as e:
        msg = f"Failed to start '{spec.command}': {e}"
        raise SpawnError(msg, command=spec.command, index=spec.index, cause=e) from e

    return ChildProcess(spec, process)
