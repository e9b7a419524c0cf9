"""Protocol definitions for the supervisor system.

This module defines the interface that decouples the aggregator from the
terminal rendering of events:
- OutputSink: Protocol for consuming tagged output lines and notices
"""

from typing import Protocol, runtime_checkable

from ._models import OutputLineEvent, ProcessTag


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for consuming process output.

    The aggregator is the only caller, so implementations never see
    concurrent calls. Implementations must handle:
    - Forwarded child output lines (stdout and stderr)
    - Per-process lifecycle notices
    - Run-wide messages that belong to no single process
    """

    def write_line(self, event: OutputLineEvent) -> None:
        """Write one line of child output.

        Args:
            event: The line event, including its tag and stream.
        """
        ...

    def write_notice(self, tag: ProcessTag, message: str) -> None:
        """Write a lifecycle notice for one process.

        Args:
            tag: Tag of the process the notice is about.
            message: Human-readable notice text.
        """
        ...

    def write_message(self, message: str) -> None:
        """Write a run-wide message, such as the cancellation notice.

        Args:
            message: Human-readable message text.
        """
        ...
