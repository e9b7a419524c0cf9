from io import StringIO

from rich.console import Console

from tandem.supervisor import (
    ConcatenatedOutputSink,
    OutputLineEvent,
    OutputSink,
    StreamKind,
)
from tests.conftest import console_text, make_console, make_spec_and_tag


def _sink(*, no_color: bool = False) -> tuple[ConcatenatedOutputSink, Console, Console]:
    console = make_console()
    error_console = make_console(stderr=True)
    return ConcatenatedOutputSink(console, error_console, no_color=no_color), console, error_console


class TestConcatenatedOutputSink:
    def test_is_output_sink(self) -> None:
        sink, _, _ = _sink()

        assert isinstance(sink, OutputSink)

    def test_stdout_line_goes_to_console(self) -> None:
        sink, console, error_console = _sink()
        spec, tag = make_spec_and_tag(identifier="1234")

        sink.write_line(OutputLineEvent(spec=spec, tag=tag, stream=StreamKind.OUT, line="hello"))

        assert console_text(console) == "1234     │ hello\n"
        assert console_text(error_console) == ""

    def test_stderr_line_goes_to_error_console(self) -> None:
        sink, console, error_console = _sink()
        spec, tag = make_spec_and_tag(identifier="99")

        sink.write_line(OutputLineEvent(spec=spec, tag=tag, stream=StreamKind.ERR, line="oops"))

        assert console_text(console) == ""
        assert console_text(error_console) == "99       │ oops\n"

    def test_notice_uses_branch_glyph_and_brackets(self) -> None:
        sink, console, error_console = _sink()
        _, tag = make_spec_and_tag(identifier="1234")

        sink.write_notice(tag, "started 'npm run dev'")

        assert console_text(console) == ""
        assert console_text(error_console) == "1234     ├ [started 'npm run dev']\n"

    def test_long_identifier_is_not_truncated(self) -> None:
        sink, console, _ = _sink()
        spec, tag = make_spec_and_tag(identifier="123456789")

        sink.write_line(OutputLineEvent(spec=spec, tag=tag, stream=StreamKind.OUT, line="x"))

        assert console_text(console) == "123456789 │ x\n"

    def test_line_is_not_interpreted_as_markup(self) -> None:
        sink, console, _ = _sink()
        spec, tag = make_spec_and_tag(identifier="1")

        sink.write_line(
            OutputLineEvent(spec=spec, tag=tag, stream=StreamKind.OUT, line="[bold]x[/bold]")
        )

        assert console_text(console) == "1        │ [bold]x[/bold]\n"

    def test_message_goes_to_error_console(self) -> None:
        sink, console, error_console = _sink()

        sink.write_message("[SIGINT received, stopping 2 process(es)]")

        assert console_text(console) == ""
        assert console_text(error_console) == "[SIGINT received, stopping 2 process(es)]\n"


class TestColoring:
    @staticmethod
    def _color_console() -> Console:
        return Console(
            file=StringIO(),
            force_terminal=True,
            color_system="truecolor",
            width=200,
            legacy_windows=False,
        )

    def test_prefix_uses_tag_color(self) -> None:
        console = self._color_console()
        sink = ConcatenatedOutputSink(console, make_console(stderr=True))
        spec, tag = make_spec_and_tag(identifier="1")
        red, green, blue = tag.color

        sink.write_line(OutputLineEvent(spec=spec, tag=tag, stream=StreamKind.OUT, line="x"))

        assert f"\x1b[38;2;{red};{green};{blue}m" in console_text(console)

    def test_no_color_omits_escape_sequences(self) -> None:
        console = self._color_console()
        sink = ConcatenatedOutputSink(console, make_console(stderr=True), no_color=True)
        spec, tag = make_spec_and_tag(identifier="1")

        sink.write_line(OutputLineEvent(spec=spec, tag=tag, stream=StreamKind.OUT, line="x"))

        assert "\x1b[38;2" not in console_text(console)
