"""Per-process pump.

A pump drains one child's stdout and stderr line by line into the shared
event channel, kills the child once when cancellation is requested, and
reports the child's exit outcome.

The child is awaited while its streams are still being read. Once it has
exited, the readers keep going until end of file or until ``drain_timeout``
expires, whichever comes first; the deadline covers background processes
that inherited the pipes and outlive the child. Only then is the termination
event sent, so it never overtakes output the pump has read. A kill does not
end the pump early: the remaining buffered output is still forwarded and the
real outcome is still observed.
"""

import math
import signal
from typing import final

import anyio
import anyio.abc
from structlog.typing import FilteringBoundLogger

from tandem.exceptions import ChannelClosedError, KillError
from tandem.utils import get_null_logger

from ._cancel import CancellationFlag
from ._models import (
    Exited,
    NoticeEvent,
    Outcome,
    OutputLineEvent,
    ProcessState,
    ProcessTag,
    StreamKind,
    SupervisorEvent,
    TerminationEvent,
)
from ._process import ChildProcess

DRAIN_TIMEOUT = 0.5


@final
class LineSplitter:
    """Incrementally splits a byte stream into text lines.

    Lines are separated by ``\\n``; a trailing ``\\r`` is dropped and bytes
    that are not valid UTF-8 are replaced rather than aborting the stream.
    """

    __slots__ = ("_buffer",)

    def __init__(self) -> None:
        self._buffer = bytearray()

    @staticmethod
    def _decode(raw: bytes | bytearray) -> str:
        return bytes(raw).decode("utf-8", errors="replace").removesuffix("\r")

    def feed(self, chunk: bytes) -> list[str]:
        """Add a chunk and return every line it completes."""
        self._buffer.extend(chunk)
        lines: list[str] = []
        while (newline := self._buffer.find(b"\n")) >= 0:
            lines.append(self._decode(self._buffer[:newline]))
            del self._buffer[: newline + 1]
        return lines

    def flush(self) -> list[str]:
        """Return the final unterminated line, if any."""
        if not self._buffer:
            return []
        line = self._decode(self._buffer)
        self._buffer.clear()
        return [line]


@final
class Pump:
    """Drains one child process and reports its outcome.

    Attributes:
        tag: Tag attached to every event this pump sends.
        state: Current lifecycle state of the child.
    """

    __slots__ = (
        "_child",
        "_drain_deadline",
        "_drain_timeout",
        "_flag",
        "_kill_requested",
        "_kill_signal",
        "_logger",
        "_read_scopes",
        "_send",
        "state",
        "tag",
    )

    def __init__(  # noqa: PLR0913
        self,
        child: ChildProcess,
        tag: ProcessTag,
        send_stream: anyio.abc.ObjectSendStream[SupervisorEvent],
        flag: CancellationFlag,
        *,
        kill_signal: signal.Signals = signal.SIGTERM,
        drain_timeout: float = DRAIN_TIMEOUT,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the pump.

        Args:
            child: The spawned child to drain. The pump takes ownership and
                reaps it when done.
            tag: Tag for this process's events.
            send_stream: This pump's sender on the shared channel. The pump
                closes it when done.
            flag: Process-wide cancellation flag.
            kill_signal: Signal sent to the child on cancellation.
            drain_timeout: Seconds to keep reading after the child exits,
                for pipes still held open by its background processes.
            logger: Structured logger for diagnostics.
        """
        self._child = child
        self.tag = tag
        self._send = send_stream
        self._flag = flag
        self._kill_signal = kill_signal
        self._kill_requested = False
        self._drain_timeout = drain_timeout
        self._drain_deadline = math.inf
        self._read_scopes: dict[StreamKind, anyio.CancelScope] = {}
        self._logger = (logger or get_null_logger()).bind(
            pid=child.pid, index=child.spec.index
        )
        self.state = ProcessState.RUNNING

    async def _emit(self, event: SupervisorEvent) -> None:
        try:
            await self._send.send(event)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
            msg = f"Event channel closed while process {self.tag.identifier} was running"
            raise ChannelClosedError(msg) from e

    async def _notice(self, message: str) -> None:
        await self._emit(NoticeEvent(spec=self._child.spec, tag=self.tag, message=message))

    async def _receive(
        self,
        stream: anyio.abc.ByteReceiveStream,
        kind: StreamKind,
    ) -> bytes | None:
        """Read the next chunk, or None at end of file or past the drain deadline."""
        with anyio.CancelScope(deadline=self._drain_deadline) as scope:
            self._read_scopes[kind] = scope
            try:
                return await stream.receive()
            except anyio.EndOfStream:
                return None
            except (anyio.BrokenResourceError, anyio.ClosedResourceError, OSError) as e:
                # A stream that cannot be read is treated as closed
                self._logger.debug("stream_read_failed", stream=kind.value, error=str(e))
                return None
            finally:
                del self._read_scopes[kind]

        self._logger.debug("stream_abandoned", stream=kind.value)
        return None

    async def _drain(
        self,
        stream: anyio.abc.ByteReceiveStream,
        kind: StreamKind,
    ) -> None:
        """Forward every line of one stream, in order, until it ends."""
        splitter = LineSplitter()
        while (chunk := await self._receive(stream, kind)) is not None:
            for line in splitter.feed(chunk):
                await self._emit(self._line_event(kind, line))

        for line in splitter.flush():
            await self._emit(self._line_event(kind, line))

    def _start_drain_deadline(self) -> None:
        self._drain_deadline = anyio.current_time() + self._drain_timeout
        for scope in self._read_scopes.values():
            scope.deadline = self._drain_deadline

    def _line_event(self, kind: StreamKind, line: str) -> OutputLineEvent:
        return OutputLineEvent(spec=self._child.spec, tag=self.tag, stream=kind, line=line)

    async def request_kill(self) -> None:
        """Kill the child once; later calls are no-ops.

        The pump keeps draining after the kill. A failed kill is reported as a
        notice and the pump keeps waiting for the child to exit on its own.
        """
        if self._kill_requested:
            return
        self._kill_requested = True
        self.state = ProcessState.DRAINING
        self._logger.info("kill_requested", signal=self._kill_signal.name)
        await self._notice(f"sending {self._kill_signal.name}")

        try:
            self._child.kill(self._kill_signal)
        except KillError as e:
            self._logger.warning("kill_failed", error=str(e))
            await self._notice(f"kill failed: {e}")

    async def _watch_cancellation(self) -> None:
        await self._flag.wait()
        await self.request_kill()

    async def run(self) -> Outcome:
        """Drain the child to completion and report its outcome.

        Returns:
            The child's termination outcome, also sent as a TerminationEvent.

        Raises:
            ChannelClosedError: If the aggregator stopped receiving early.
        """
        async with self._send, self._child:
            await self._notice(f"started '{self._child.spec.command}'")

            async with anyio.create_task_group() as tg:
                tg.start_soon(self._watch_cancellation)

                async with anyio.create_task_group() as readers:
                    if self._child.stdout is not None:
                        readers.start_soon(self._drain, self._child.stdout, StreamKind.OUT)
                    if self._child.stderr is not None:
                        readers.start_soon(self._drain, self._child.stderr, StreamKind.ERR)

                    outcome = await self._child.wait()
                    self._start_drain_deadline()

                tg.cancel_scope.cancel()

            self.state = (
                ProcessState.EXITED if isinstance(outcome, Exited) else ProcessState.SIGNALED
            )
            self._logger.info("process_finished", outcome=repr(outcome))
            await self._emit(
                TerminationEvent(spec=self._child.spec, tag=self.tag, outcome=outcome)
            )

        return outcome
