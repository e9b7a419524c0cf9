"""Aggregator: the single consumer of all pump events.

Every pump sends into one shared memory object stream. The stream is FIFO per
sender and each pump sends its termination event only after its last output
line, so the aggregator always prints a process's output before that
process's exit notice. Events of different processes interleave in real-time
arrival order.
"""

from typing import final

import anyio
import anyio.abc
from structlog.typing import FilteringBoundLogger

from tandem.exceptions import ChannelClosedError, SupervisorError
from tandem.utils import get_null_logger

from ._models import (
    Exited,
    NoticeEvent,
    Outcome,
    OutputLineEvent,
    ProcessState,
    RunResult,
    Signaled,
    SpawnFailed,
    SupervisorEvent,
    TerminationEvent,
)
from ._protocol import OutputSink

SPAWN_FAILED_STATUS = 127
"""Status contributed by a command whose interpreter could not be launched."""


def describe_outcome(outcome: Outcome) -> str:
    """Return the human-readable notice for a termination outcome."""
    match outcome:
        case Exited(code=code):
            return f"exited with status {code}"
        case Signaled(description=description):
            return f"killed by signal {description}"
        case SpawnFailed(reason=reason):
            return f"failed to start: {reason}"


def fold_status(status: int, outcome: Outcome) -> int:
    """Fold one outcome into the running aggregate status.

    Exited codes raise the status to their maximum. Signaled processes have no
    exit code and leave it unchanged. Failed spawns count as status 127.
    """
    match outcome:
        case Exited(code=code):
            return max(status, code)
        case Signaled():
            return status
        case SpawnFailed():
            return max(status, SPAWN_FAILED_STATUS)


def _final_state(outcome: Outcome) -> ProcessState:
    match outcome:
        case Exited():
            return ProcessState.EXITED
        case Signaled():
            return ProcessState.SIGNALED
        case SpawnFailed():
            return ProcessState.FAILED


@final
class Aggregator:
    """Prints pump events and derives the run's exit status.

    Attributes:
        expected: Number of launch specs; the aggregator finishes once this
            many termination events have been received.
    """

    __slots__ = (
        "_finished",
        "_logger",
        "_outcomes",
        "_sink",
        "_states",
        "_status",
        "expected",
    )

    def __init__(
        self,
        expected: int,
        sink: OutputSink,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            expected: Number of processes that will report a termination.
            sink: Where output lines and notices are written.
            logger: Structured logger for diagnostics.
        """
        self.expected = expected
        self._sink = sink
        self._logger = logger or get_null_logger()
        self._finished = 0
        self._status = 0
        self._outcomes: dict[int, Outcome] = {}
        self._states: dict[int, ProcessState] = {}

    @property
    def finished(self) -> int:
        """Return how many processes have reported a termination."""
        return self._finished

    @property
    def status(self) -> int:
        """Return the aggregate status so far."""
        return self._status

    @property
    def states(self) -> dict[int, ProcessState]:
        """Return the last known state per launch index."""
        return dict(self._states)

    def is_done(self) -> bool:
        """Return True once every expected process has reported."""
        return self._finished >= self.expected

    def handle(self, event: SupervisorEvent) -> None:
        """Print or account for a single event.

        Raises:
            SupervisorError: If a process reports a second termination.
        """
        match event:
            case OutputLineEvent():
                _ = self._states.setdefault(event.spec.index, ProcessState.RUNNING)
                self._sink.write_line(event)
            case NoticeEvent():
                _ = self._states.setdefault(event.spec.index, ProcessState.RUNNING)
                self._sink.write_notice(event.tag, event.message)
            case TerminationEvent():
                self._handle_termination(event)

    def _handle_termination(self, event: TerminationEvent) -> None:
        index = event.spec.index
        if self._states.get(index) == ProcessState.REPORTED:
            msg = f"Process {event.tag.identifier} reported termination twice"
            raise SupervisorError(msg)

        self._sink.write_notice(event.tag, describe_outcome(event.outcome))

        self._outcomes[index] = event.outcome
        self._status = fold_status(self._status, event.outcome)
        self._finished += 1
        self._states[index] = ProcessState.REPORTED

        self._logger.info(
            "process_reported",
            index=index,
            identifier=event.tag.identifier,
            state=_final_state(event.outcome).value,
            outcome=repr(event.outcome),
            finished=self._finished,
            expected=self.expected,
        )

    def result(self) -> RunResult:
        """Return the aggregate result of everything handled so far."""
        return RunResult(
            status=self._status,
            finished=self._finished,
            outcomes=dict(self._outcomes),
        )

    async def run(
        self,
        receive_stream: anyio.abc.ObjectReceiveStream[SupervisorEvent],
    ) -> RunResult:
        """Drain the channel until every process has reported.

        Args:
            receive_stream: Receiving end of the shared event channel. Closed
                on return.

        Returns:
            The aggregate result of the run.

        Raises:
            ChannelClosedError: If every sender closed before all processes
                reported a termination.
        """
        async with receive_stream:
            while not self.is_done():
                try:
                    event = await receive_stream.receive()
                except anyio.EndOfStream as e:
                    msg = (
                        f"Event channel closed after {self._finished} of "
                        f"{self.expected} processes reported"
                    )
                    raise ChannelClosedError(msg) from e
                self.handle(event)

        return self.result()
