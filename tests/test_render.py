"""Tests for code-fence aware reply rendering."""

from __future__ import annotations

import io

from rich.console import Console

from llmchat.interactive.render import LineType, MarkdownRender, StreamPrinter, print_reply

REPLY = "Here:\n```python\nx = 1\ny = 2\n```\nDone."


class TestMarkdownRender:
    """The four-state line classifier."""

    def test_transitions(self) -> None:
        """Test a fenced block walks through every state."""
        render = MarkdownRender()
        types = [render.classify(line) for line in REPLY.split("\n")]
        assert types == [
            LineType.NORMAL,
            LineType.CODE_BEGIN,
            LineType.CODE_INNER,
            LineType.CODE_INNER,
            LineType.CODE_END,
            LineType.NORMAL,
        ]

    def test_state_persists_across_calls(self) -> None:
        """Test the same line renders differently depending on history."""
        render = MarkdownRender()
        assert render.render_line("plain").style == ""
        render.render_line("```")
        assert render.render_line("plain").style == "yellow"

    def test_indented_fence(self) -> None:
        """Test fences are recognized after leading whitespace."""
        render = MarkdownRender()
        assert render.classify("   ```") is LineType.CODE_BEGIN

    def test_fence_lines_not_colored(self) -> None:
        """Test only lines inside the block are colored."""
        render = MarkdownRender()
        styles = [str(text.style) for text in render.render(REPLY)]
        assert styles == ["", "", "yellow", "yellow", "", ""]

    def test_back_to_back_blocks(self) -> None:
        """Test a fence right after a closing fence opens a new block."""
        render = MarkdownRender()
        for line in ["```", "a", "```"]:
            render.classify(line)
        assert render.classify("```") is LineType.CODE_BEGIN
        assert render.classify("b") is LineType.CODE_INNER

    def test_reset(self) -> None:
        """Test reset returns to NORMAL."""
        render = MarkdownRender()
        render.classify("```")
        render.reset()
        assert render.line_type is LineType.NORMAL


class TestStreamPrinter:
    """Incremental printing."""

    def test_chunks_printed_as_whole_lines(self) -> None:
        """Test partial lines are held back until complete."""
        out = io.StringIO()
        printer = StreamPrinter(Console(file=out, width=80, color_system=None))

        printer.feed("Hel")
        assert out.getvalue() == ""
        printer.feed("lo\nwor")
        assert out.getvalue() == "Hello\n"
        printer.feed("ld")
        printer.finish()

        assert out.getvalue() == "Hello\nworld\n"

    def test_finish_without_pending(self) -> None:
        """Test finish prints nothing when the last chunk ended a line."""
        out = io.StringIO()
        printer = StreamPrinter(Console(file=out, width=80, color_system=None))
        printer.feed("line\n")
        printer.finish()
        assert out.getvalue() == "line\n"

    def test_print_reply(self) -> None:
        """Test a complete reply prints every line."""
        out = io.StringIO()
        print_reply(Console(file=out, width=80, color_system=None), REPLY)
        assert out.getvalue() == REPLY + "\n"
