"""Tab completion for the interactive prompt."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from llmchat.core.llm.models import AVAILABLE_MODELS, PREDEFINED_ROLES
from llmchat.session.storage import SessionStorageError, list_sessions
from llmchat.session.vocabulary import Vocabulary

COMMAND_NAMES = (
    "/help",
    "/clear",
    "/quit",
    "/system",
    "/mic",
    "/cls",
    "/save",
    "/load",
    "/title",
    "/status",
    "/model",
    "/word",
    "/ss",
)


def _prefixed(candidates: Iterable[str], prefix: str) -> list[str]:
    prefix = prefix.lower()
    return [c for c in candidates if c.lower().startswith(prefix)]


class ChatCompleter(Completer):
    """Completes command names, command arguments and vocabulary words.

    - first word starting with ``/``: command names
    - ``/model <x>``: catalog model ids
    - ``/system <x>``: predefined role names
    - ``/load <x>``: saved session files, shown with their model
    - anything else: vocabulary words
    """

    def __init__(
        self,
        vocabulary: Vocabulary,
        sessions_dir: Path | None = None,
        models: Callable[[], Iterable[str]] | None = None,
    ) -> None:
        self.vocabulary = vocabulary
        self.sessions_dir = sessions_dir
        self._models = models or (lambda: AVAILABLE_MODELS)

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Iterator[Completion]:
        text = document.text_before_cursor
        word = text[text.rfind(" ") + 1 :]
        start = -len(word)

        if " " not in text:
            if text.startswith("/"):
                for name in _prefixed(COMMAND_NAMES, word):
                    yield Completion(name, start_position=start)
            else:
                for w in self.vocabulary.matching(word):
                    yield Completion(w, start_position=start)
            return

        command = text.split(maxsplit=1)[0].lower()
        argument_index = len(text.split())
        if text.endswith(" "):
            argument_index += 1
        first_argument = argument_index == 2

        if command == "/model" and first_argument:
            for model in _prefixed(self._models(), word):
                yield Completion(model, start_position=start)
        elif command == "/system" and first_argument:
            for role in _prefixed(PREDEFINED_ROLES, word):
                yield Completion(role, start_position=start)
        elif command == "/load" and first_argument:
            yield from self._session_completions(word)
        else:
            for w in self.vocabulary.matching(word):
                yield Completion(w, start_position=start)

    def _session_completions(self, word: str) -> Iterator[Completion]:
        if self.sessions_dir is None:
            return
        try:
            sessions = list_sessions(self.sessions_dir)
        except SessionStorageError:
            return
        prefix = word.lower()
        for summary in sessions:
            if not summary.name.lower().startswith(prefix):
                continue
            display = f"{summary.name} ({summary.model})" if summary.model else summary.name
            yield Completion(summary.name, start_position=-len(word), display=display)
