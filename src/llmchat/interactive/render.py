"""Line-by-line coloring of model replies.

Replies are markdown. Lines inside a fenced code block are shown in yellow;
everything else, including the fence lines themselves, is printed as is.
The renderer keeps the state of the previous line, so it must see every
line of a reply in order.
"""

from __future__ import annotations

from enum import Enum

from rich.console import Console
from rich.text import Text

CODE_STYLE = "yellow"
FENCE = "```"


class LineType(Enum):
    """Position of a line relative to a fenced code block."""

    NORMAL = "normal"
    CODE_BEGIN = "code_begin"
    CODE_INNER = "code_inner"
    CODE_END = "code_end"


# (previous line type, line is a fence) -> line type
_TRANSITIONS: dict[tuple[LineType, bool], LineType] = {
    (LineType.NORMAL, True): LineType.CODE_BEGIN,
    (LineType.CODE_END, True): LineType.CODE_BEGIN,
    (LineType.CODE_BEGIN, True): LineType.CODE_END,
    (LineType.CODE_INNER, True): LineType.CODE_END,
    (LineType.NORMAL, False): LineType.NORMAL,
    (LineType.CODE_END, False): LineType.NORMAL,
    (LineType.CODE_BEGIN, False): LineType.CODE_INNER,
    (LineType.CODE_INNER, False): LineType.CODE_INNER,
}


class MarkdownRender:
    """Stateful code-fence aware line colorer."""

    def __init__(self) -> None:
        self.line_type = LineType.NORMAL

    def reset(self) -> None:
        self.line_type = LineType.NORMAL

    def classify(self, line: str) -> LineType:
        """Advance the state machine by one line and return the new state."""
        is_fence = line.lstrip().startswith(FENCE)
        self.line_type = _TRANSITIONS[(self.line_type, is_fence)]
        return self.line_type

    def render_line(self, line: str) -> Text:
        if self.classify(line) is LineType.CODE_INNER:
            return Text(line, style=CODE_STYLE)
        return Text(line)

    def render(self, text: str) -> list[Text]:
        return [self.render_line(line) for line in text.split("\n")]


class StreamPrinter:
    """Prints streamed chunks one complete line at a time.

    Chunks rarely end on a line boundary, so partial lines are held back
    until their newline arrives (or ``finish`` is called).
    """

    def __init__(self, console: Console, render: MarkdownRender | None = None) -> None:
        self._console = console
        self._render = render or MarkdownRender()
        self._pending = ""

    def feed(self, chunk: str) -> None:
        self._pending += chunk
        *lines, self._pending = self._pending.split("\n")
        for line in lines:
            self._console.print(self._render.render_line(line))

    def finish(self) -> None:
        """Flush any trailing partial line."""
        if self._pending:
            self._console.print(self._render.render_line(self._pending))
        self._pending = ""


def print_reply(console: Console, text: str, render: MarkdownRender | None = None) -> None:
    """Print a complete reply through a fresh (or given) renderer."""
    render = render or MarkdownRender()
    for line in render.render(text):
        console.print(line)
