"""Main supervisor coordinator for one tandem run.

This module provides the Supervisor class that spawns every launch spec,
runs one Pump per child and a single Aggregator over a shared channel, and
wires the cancellation broadcaster into all of them using anyio for
structured concurrency.
"""

import math
import signal
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import final

import anyio
import anyio.abc
from structlog.typing import FilteringBoundLogger

from tandem.exceptions import SpawnError
from tandem.utils import get_null_logger

from ._aggregator import Aggregator
from ._cancel import CancellationBroadcaster, CancellationFlag
from ._colors import ColorPolicy, make_tag
from ._models import (
    LaunchSpec,
    ProcessState,
    RunResult,
    SpawnFailed,
    SupervisorEvent,
    TerminationEvent,
)
from ._output import ConcatenatedOutputSink
from ._process import DEFAULT_SHELL, spawn
from ._protocol import OutputSink
from ._pump import Pump


def build_launch_specs(commands: Sequence[str]) -> tuple[LaunchSpec, ...]:
    """Turn an ordered list of command strings into launch specs."""
    return tuple(LaunchSpec(index=i, command=command) for i, command in enumerate(commands))


@final
class Supervisor:
    """Runs several shell commands concurrently and multiplexes their output.

    Each command gets its own pump task; all pumps feed one aggregator, which
    prints the combined output and computes the run's exit status. The run
    ends once every command has been accounted for.
    """

    __slots__ = (
        "_broadcaster",
        "_color_policy",
        "_cwd",
        "_env",
        "_handle_signals",
        "_kill_signal",
        "_logger",
        "_pumps",
        "_shell",
        "_sink",
        "_spawn_failures",
        "_specs",
    )

    def __init__(  # noqa: PLR0913
        self,
        commands: Sequence[str],
        *,
        output_sink: OutputSink | None = None,
        shell: str = DEFAULT_SHELL,
        color_policy: ColorPolicy = ColorPolicy.COMMAND,
        kill_signal: signal.Signals = signal.SIGTERM,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        handle_signals: bool = True,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            commands: Shell commands to run, in launch order.
            output_sink: Sink for combined output. Uses ConcatenatedOutputSink
                if None.
            shell: Command interpreter used to run each command.
            color_policy: How prefix colors are assigned.
            kill_signal: Signal sent to every child on cancellation.
            cwd: Working directory for the children.
            env: Additional environment variables for the children.
            handle_signals: Install the SIGINT/SIGTERM receiver during run().
            logger: Structured logger for diagnostics.
        """
        self._specs = build_launch_specs(commands)
        self._sink: OutputSink = output_sink or ConcatenatedOutputSink()
        self._shell = shell
        self._color_policy = color_policy
        self._kill_signal = kill_signal
        self._cwd = cwd
        self._env = env
        self._handle_signals = handle_signals
        self._logger = logger or get_null_logger()
        self._pumps: list[Pump] = []
        self._spawn_failures = 0
        self._broadcaster = CancellationBroadcaster(
            CancellationFlag(),
            on_cancel=self._announce_cancellation,
        )

    @property
    def specs(self) -> tuple[LaunchSpec, ...]:
        """Return the launch specs of this run."""
        return self._specs

    @property
    def pumps(self) -> list[Pump]:
        """Return the pumps of every successfully spawned child."""
        return list(self._pumps)

    @property
    def flag(self) -> CancellationFlag:
        """Return the run's cancellation flag."""
        return self._broadcaster.flag

    def cancel(self) -> bool:
        """Request cancellation as if an interactive interrupt arrived.

        Returns:
            True if this call triggered cancellation, False if it was
            already requested.
        """
        return self._broadcaster.handle(signal.SIGINT)

    def _announce_cancellation(self, signum: signal.Signals) -> None:
        done = (ProcessState.EXITED, ProcessState.SIGNALED)
        finished = sum(1 for pump in self._pumps if pump.state in done)
        running = len(self._specs) - self._spawn_failures - finished
        self._logger.info("cancellation_requested", signal=signum.name, running=running)
        self._sink.write_message(
            f"[{signum.name} received, stopping {running} process(es)]"
        )

    async def _launch(
        self,
        spec: LaunchSpec,
        send_stream: anyio.abc.ObjectSendStream[SupervisorEvent],
        task_group: anyio.abc.TaskGroup,
    ) -> None:
        """Spawn one launch spec and start its pump.

        A spawn failure does not abort the run: it is reported through the
        channel as a SpawnFailed termination so it is still counted.
        """
        try:
            child = await spawn(spec, shell=self._shell, cwd=self._cwd, env=self._env)
        except SpawnError as e:
            self._logger.error("spawn_failed", index=spec.index, error=str(e))
            self._spawn_failures += 1
            reason = str(e.cause) if e.cause is not None else str(e)
            tag = make_tag(spec, f"#{spec.index}", self._color_policy)
            await send_stream.send(
                TerminationEvent(spec=spec, tag=tag, outcome=SpawnFailed(reason))
            )
            return

        self._logger.info(
            "process_spawned", index=spec.index, pid=child.pid, command=spec.command
        )
        tag = make_tag(spec, str(child.pid), self._color_policy)
        pump = Pump(
            child,
            tag,
            send_stream.clone(),
            self.flag,
            kill_signal=self._kill_signal,
            logger=self._logger,
        )
        self._pumps.append(pump)
        task_group.start_soon(pump.run, name=f"pump-{spec.index}")

    async def _watch_signals(
        self,
        scope: anyio.CancelScope,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        with scope:
            await self._broadcaster.watch(task_status=task_status)

    async def run(self) -> RunResult:
        """Run every command to completion.

        Blocks until all children have exited (or failed to start) and their
        output has been printed.

        Returns:
            The aggregate result; ``status`` is the intended process exit code.
        """
        self._logger.info("run_started", commands=[spec.command for spec in self._specs])

        send_stream, receive_stream = anyio.create_memory_object_stream[SupervisorEvent](
            max_buffer_size=math.inf
        )
        aggregator = Aggregator(len(self._specs), self._sink, logger=self._logger)
        signal_scope = anyio.CancelScope()

        async with anyio.create_task_group() as tg:
            if self._handle_signals:
                await tg.start(self._watch_signals, signal_scope)

            async with send_stream:
                for spec in self._specs:
                    await self._launch(spec, send_stream, tg)

            result = await aggregator.run(receive_stream)
            signal_scope.cancel()

        self._logger.info("run_finished", status=result.status, finished=result.finished)
        return result
