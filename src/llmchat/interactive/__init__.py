"""Interactive REPL for llmchat."""

from llmchat.interactive.commands import CommandDispatcher
from llmchat.interactive.completion import ChatCompleter
from llmchat.interactive.reader import LineReader
from llmchat.interactive.render import LineType, MarkdownRender, StreamPrinter
from llmchat.interactive.repl import SessionLoop, run_interactive

__all__ = [
    "ChatCompleter",
    "CommandDispatcher",
    "LineReader",
    "LineType",
    "MarkdownRender",
    "SessionLoop",
    "StreamPrinter",
    "run_interactive",
]
