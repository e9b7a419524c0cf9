"""Data models for the supervisor system.

This module defines the core data types for a tandem run:
- LaunchSpec: One requested command and its position in the input
- ProcessTag: Color and identifier attached to everything a process emits
- StreamKind: Which output stream a line came from
- Exited, Signaled, SpawnFailed: Termination outcomes
- OutputLineEvent, NoticeEvent, TerminationEvent: Channel events
- ProcessState: Lifecycle states of a supervised process
- RunResult: Aggregate result of a whole run
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

type RGB = tuple[int, int, int]


class StreamKind(StrEnum):
    """Output stream of a child process."""

    OUT = "out"
    ERR = "err"


class ProcessState(StrEnum):
    """Process lifecycle states.

    - RUNNING: Child is running and its output is being forwarded
    - DRAINING: A kill was requested; remaining output is still forwarded
    - EXITED: Child exited with a numeric code
    - SIGNALED: Child was terminated by a signal
    - FAILED: Child could not be started
    - REPORTED: The aggregator has accounted for the termination
    """

    RUNNING = "running"
    DRAINING = "draining"
    EXITED = "exited"
    SIGNALED = "signaled"
    FAILED = "failed"
    REPORTED = "reported"


@dataclass(frozen=True, slots=True)
class LaunchSpec:
    """A user-requested command.

    Attributes:
        index: Position of the command in the input list.
        command: Shell command string, passed to the interpreter verbatim.
    """

    index: int
    command: str


@dataclass(frozen=True, slots=True)
class ProcessTag:
    """Visual tag attached to every event from one launched process.

    Attributes:
        color: 24-bit display color.
        identifier: Short identifier shown in the prefix (the pid, or
            ``#<index>`` for a process that never started).
    """

    color: RGB
    identifier: str


@dataclass(frozen=True, slots=True)
class Exited:
    """Child exited normally with a numeric status."""

    code: int


@dataclass(frozen=True, slots=True)
class Signaled:
    """Child was terminated by a signal and has no exit code."""

    description: str


@dataclass(frozen=True, slots=True)
class SpawnFailed:
    """The command interpreter could not be launched."""

    reason: str


type Outcome = Exited | Signaled | SpawnFailed


@dataclass(frozen=True, slots=True)
class OutputLineEvent:
    """A single line read from a child's stdout or stderr.

    Attributes:
        spec: Launch spec of the producing process.
        tag: Tag of the producing process.
        stream: Stream the line was read from.
        line: Line content without the trailing newline.
    """

    spec: LaunchSpec
    tag: ProcessTag
    stream: StreamKind
    line: str


@dataclass(frozen=True, slots=True)
class NoticeEvent:
    """Lifecycle metadata produced by a pump (start, kill request, kill failure)."""

    spec: LaunchSpec
    tag: ProcessTag
    message: str


@dataclass(frozen=True, slots=True)
class TerminationEvent:
    """Final outcome of one process.

    Sent exactly once per launch spec, after all of the process's output.
    """

    spec: LaunchSpec
    tag: ProcessTag
    outcome: Outcome


type SupervisorEvent = OutputLineEvent | NoticeEvent | TerminationEvent


@dataclass(frozen=True, slots=True)
class RunResult:
    """Aggregate result of a run.

    Attributes:
        status: Maximum exit code among normally-exited children; signaled
            children do not contribute, failed spawns contribute 127.
        finished: Number of processes that reported a termination.
        outcomes: Outcome per launch index.
    """

    status: int
    finished: int
    outcomes: Mapping[int, Outcome] = field(default_factory=dict)
