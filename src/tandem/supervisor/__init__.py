"""Supervisor package for running shell commands side by side.

This package runs several shell commands concurrently, multiplexes their
output into one prefixed, colored stream, and reports an aggregate exit
status once every command has finished.

Key Components:
    - LaunchSpec: One command and its launch position
    - ProcessTag: Color and identifier shown in front of every line
    - OutputLineEvent, NoticeEvent, TerminationEvent: Channel events
    - Exited, Signaled, SpawnFailed: Termination outcomes
    - CancellationFlag: Process-wide cancellation request
    - CancellationBroadcaster: Interrupt signal handler that sets the flag
    - ChildProcess: Spawned subprocess handle
    - Pump: Per-process output forwarder
    - Aggregator: Single consumer that prints and folds the exit status
    - OutputSink: Protocol for output consumption
    - ConcatenatedOutputSink: Console output implementation
    - Supervisor: Run coordinator

Example:
    >>> from tandem.supervisor import Supervisor
    >>> supervisor = Supervisor(["echo A", "echo B"])
    >>> result = await supervisor.run()  # Blocks until every command exits
    >>> result.status
    0
"""

from ._aggregator import SPAWN_FAILED_STATUS, Aggregator, describe_outcome, fold_status
from ._cancel import DEFAULT_SIGNALS, CancellationBroadcaster, CancellationFlag
from ._colors import PALETTE, ColorPolicy, assign_color, make_tag, stable_hash
from ._models import (
    RGB,
    Exited,
    LaunchSpec,
    NoticeEvent,
    Outcome,
    OutputLineEvent,
    ProcessState,
    ProcessTag,
    RunResult,
    Signaled,
    SpawnFailed,
    StreamKind,
    SupervisorEvent,
    TerminationEvent,
)
from ._output import ConcatenatedOutputSink
from ._process import (
    DEFAULT_SHELL,
    ChildProcess,
    describe_signal,
    outcome_from_returncode,
    spawn,
)
from ._protocol import OutputSink
from ._pump import DRAIN_TIMEOUT, LineSplitter, Pump
from ._supervisor import Supervisor, build_launch_specs

__all__ = [
    "DEFAULT_SHELL",
    "DEFAULT_SIGNALS",
    "DRAIN_TIMEOUT",
    "PALETTE",
    "RGB",
    "SPAWN_FAILED_STATUS",
    "Aggregator",
    "CancellationBroadcaster",
    "CancellationFlag",
    "ChildProcess",
    "ColorPolicy",
    "ConcatenatedOutputSink",
    "Exited",
    "LaunchSpec",
    "LineSplitter",
    "NoticeEvent",
    "Outcome",
    "OutputLineEvent",
    "OutputSink",
    "ProcessState",
    "ProcessTag",
    "Pump",
    "RunResult",
    "Signaled",
    "SpawnFailed",
    "StreamKind",
    "Supervisor",
    "SupervisorEvent",
    "TerminationEvent",
    "assign_color",
    "build_launch_specs",
    "describe_outcome",
    "describe_signal",
    "fold_status",
    "make_tag",
    "outcome_from_returncode",
    "spawn",
    "stable_hash",
]
