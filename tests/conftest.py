"""Shared test fixtures for tandem tests."""

from dataclasses import dataclass, field
from io import StringIO

import pytest
from rich.console import Console

from tandem.supervisor import (
    LaunchSpec,
    OutputLineEvent,
    ProcessTag,
    StreamKind,
    make_tag,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@dataclass(slots=True)
class RecordingSink:
    """Output sink that keeps everything it is given, in order."""

    lines: list[OutputLineEvent] = field(default_factory=list)
    notices: list[tuple[ProcessTag, str]] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    order: list[tuple[str, str, str]] = field(default_factory=list)

    def write_line(self, event: OutputLineEvent) -> None:
        self.lines.append(event)
        self.order.append(("line", event.tag.identifier, event.line))

    def write_notice(self, tag: ProcessTag, message: str) -> None:
        self.notices.append((tag, message))
        self.order.append(("notice", tag.identifier, message))

    def write_message(self, message: str) -> None:
        self.messages.append(message)
        self.order.append(("message", "", message))

    def lines_for(
        self, identifier: str, stream: StreamKind | None = None
    ) -> list[str]:
        """Return the lines one process wrote, optionally for one stream."""
        return [
            event.line
            for event in self.lines
            if event.tag.identifier == identifier
            and (stream is None or event.stream == stream)
        ]

    def notices_for(self, identifier: str) -> list[str]:
        return [message for tag, message in self.notices if tag.identifier == identifier]


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


def make_console(*, stderr: bool = False) -> Console:
    """Create an uncolored console that writes into a buffer."""
    return Console(
        file=StringIO(),
        stderr=stderr,
        width=200,
        force_terminal=False,
        color_system=None,
        highlight=False,
        legacy_windows=False,
    )


def console_text(console: Console) -> str:
    """Return everything written to a console created by make_console."""
    file = console.file
    assert isinstance(file, StringIO)
    return file.getvalue()


def make_spec_and_tag(
    index: int = 0, command: str = "echo hi", identifier: str = "1234"
) -> tuple[LaunchSpec, ProcessTag]:
    spec = LaunchSpec(index=index, command=command)
    return spec, make_tag(spec, identifier)
