"""Output sink implementations for the supervisor system.

This module provides the terminal implementation of the OutputSink protocol.
Child stdout lines go to standard output; child stderr lines and every
lifecycle notice go to standard error.
"""

from typing import final

from rich.color import Color
from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import OutputLineEvent, ProcessTag, StreamKind

OUTPUT_GLYPH = "│"
NOTICE_GLYPH = "├"
PREFIX_WIDTH = 8


@final
class ConcatenatedOutputSink:
    """Output sink that writes to the terminal with colored prefixes.

    Formats forwarded output as ``<id> │ line`` and notices as
    ``<id> ├ [notice]``, with the identifier in the process's tag color.
    """

    __slots__ = ("_console", "_error_console", "_message_style", "_no_color")

    def __init__(
        self,
        console: Console | None = None,
        error_console: Console | None = None,
        *,
        no_color: bool = False,
    ) -> None:
        """Initialize the output sink.

        Args:
            console: Console for child stdout lines. Created if None.
            error_console: Console for child stderr lines and notices.
                Created if None.
            no_color: Render prefixes without color.
        """
        self._console = console or Console(no_color=no_color)
        self._error_console = error_console or Console(stderr=True, no_color=no_color)
        self._no_color = no_color
        self._message_style = Style() if no_color else Style(color="yellow", bold=True)

    def _prefix(self, tag: ProcessTag, glyph: str) -> Text:
        style = Style() if self._no_color else Style(color=Color.from_rgb(*tag.color))

        text = Text()
        _ = text.append(f"{tag.identifier:<{PREFIX_WIDTH}}", style=style)
        _ = text.append(f" {glyph} ")
        return text

    @staticmethod
    def _print(console: Console, text: Text) -> None:
        console.print(text, soft_wrap=True, highlight=False)

    def write_line(self, event: OutputLineEvent) -> None:
        """Write one line of child output with its prefix.

        Args:
            event: The line event, including its tag and stream.
        """
        console = self._console if event.stream == StreamKind.OUT else self._error_console

        text = self._prefix(event.tag, OUTPUT_GLYPH)
        _ = text.append(event.line)
        self._print(console, text)

    def write_notice(self, tag: ProcessTag, message: str) -> None:
        """Write a lifecycle notice to standard error.

        Args:
            tag: Tag of the process the notice is about.
            message: Human-readable notice text.
        """
        text = self._prefix(tag, NOTICE_GLYPH)
        _ = text.append(f"[{message}]")
        self._print(self._error_console, text)

    def write_message(self, message: str) -> None:
        """Write a run-wide message to standard error.

        Args:
            message: Human-readable message text.
        """
        self._print(self._error_console, Text(message, style=self._message_style))
