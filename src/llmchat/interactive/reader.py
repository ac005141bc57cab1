"""Blocking line input with history and completion."""

from __future__ import annotations

from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.history import FileHistory, History, InMemoryHistory


class LineReader:
    """prompt_toolkit session used as a plain readline.

    ``read_line`` blocks the calling thread; the session loop runs it in an
    executor so the transcript watcher keeps running while the user types.
    """

    def __init__(
        self,
        history_file: Path | None = None,
        completer: Completer | None = None,
    ) -> None:
        history: History
        if history_file is not None:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            history = FileHistory(str(history_file))
        else:
            history = InMemoryHistory()
        self.history = history
        self.session: PromptSession[str] = PromptSession(
            history=history,
            auto_suggest=AutoSuggestFromHistory(),
            completer=completer,
            complete_while_typing=False,
        )

    def read_line(self, prompt: str) -> str:
        """Read one line.

        Raises:
            KeyboardInterrupt: the user pressed Ctrl+C.
            EOFError: the user pressed Ctrl+D on an empty line.
        """
        return self.session.prompt(ANSI(prompt))

    def add_history(self, line: str) -> None:
        """Record a line in history (and the history file, if any).

        Accepted input is usually already there; a line equal to the most
        recent entry is not stored twice.
        """
        strings = self.history.get_strings()
        if strings and strings[-1] == line:
            return
        self.history.append_string(line)
