"""Conversation state and turn execution.

ConversationState owns the ordered message log sent to the model on every
turn. Entry 0 is always the system prompt: it is replaced in place by
``set_system_prompt`` and reset by ``clear``, never removed.

A turn appends the user message, calls the model with the whole log, and
appends the assistant reply once its full text is known. In stream mode
the caller receives TextChunk events as they arrive and exactly one Done
event at the end; otherwise a TurnResult with the full text. If the model
call fails the error propagates and the user message stays in the log.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

from llmchat.core.llm.models import DEFAULT_SYSTEM_PROMPT
from llmchat.core.llm.provider import LLMProvider, Message, Role
from llmchat.logging import get_logger
from llmchat.session.storage import SessionState, sanitize_filename

log = get_logger("conversation")

DEFAULT_PROMPT = "\x1b[93m>\x1b[0m "
TITLE_PROMPT = (
    "Summarize the conversation so far in one concise sentence suitable as a title, "
    "no comma and dot"
)


@dataclass(frozen=True, slots=True)
class TextChunk:
    """A piece of streamed reply text."""

    text: str


@dataclass(frozen=True, slots=True)
class Done:
    """End of a streamed reply; carries the full text."""

    text: str


TurnEvent = TextChunk | Done


@dataclass(frozen=True, slots=True)
class TurnResult:
    """A complete (non-streamed) reply."""

    text: str


class ConversationState:
    """Message log plus the per-session settings that shape each turn."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        *,
        stream_mode: bool = False,
        prompt_string: str = DEFAULT_PROMPT,
        reply_path: Path | None = None,
    ) -> None:
        """Initialize a fresh conversation.

        Args:
            provider: Model transport.
            model: Initial model id.
            stream_mode: Request replies incrementally.
            prompt_string: Text shown before each input line.
            reply_path: File every full reply is mirrored to, if any.
        """
        if not model:
            raise ValueError("model must not be empty")
        self._provider = provider
        self._model = model
        self.stream_mode = stream_mode
        self.prompt_string = prompt_string
        self.reply_path = reply_path
        self.title: str | None = None
        self.system_prompt = ""
        self.messages: list[Message] = [Message.system(DEFAULT_SYSTEM_PROMPT)]

    @property
    def model(self) -> str:
        return self._model

    @model.setter
    def model(self, value: str) -> None:
        value = value.strip()
        if not value:
            raise ValueError("model must not be empty")
        self._model = value

    @property
    def system_message(self) -> str:
        """Text of entry 0."""
        return self.messages[0].content

    def set_system_prompt(self, text: str, label: str | None = None) -> None:
        """Replace the system prompt in place and retitle the input prompt.

        Args:
            text: New system prompt.
            label: Shown in the input prompt instead of text (role presets).
        """
        self.messages[0] = Message.system(text)
        self.system_prompt = text
        self.prompt_string = f"\x1b[32m{label or text}>\x1b[0m "

    def clear(self) -> None:
        """Reset the log to the single default system entry."""
        self.messages = [Message.system(DEFAULT_SYSTEM_PROMPT)]
        self.system_prompt = ""

    async def submit_turn(self, user_text: str) -> TurnResult | AsyncIterator[TurnEvent]:
        """Run one turn.

        Returns:
            TurnResult when stream_mode is off, otherwise an async iterator
            of TextChunk events followed by a single Done. The assistant
            entry is appended before Done is yielded.
        """
        self.messages.append(Message.user(user_text))
        payload = list(self.messages)

        if self.stream_mode:
            return self._stream_turn(payload)

        result = await self._provider.complete(payload, model=self._model)
        self._finish_turn(result.content)
        return TurnResult(result.content)

    async def _stream_turn(self, payload: list[Message]) -> AsyncIterator[TurnEvent]:
        parts: list[str] = []
        async for chunk in self._provider.stream(payload, model=self._model):
            if chunk.text:
                parts.append(chunk.text)
                yield TextChunk(chunk.text)
        text = "".join(parts)
        self._finish_turn(text)
        yield Done(text)

    def _finish_turn(self, text: str) -> None:
        self.messages.append(Message.assistant(text))
        if self.reply_path is None:
            return
        try:
            self.reply_path.write_text(text, encoding="utf-8")
        except OSError as e:
            log.warning("Failed to mirror reply to %s: %s", self.reply_path, e)

    async def summarize_title(self) -> str:
        """Ask the model for a one-line title and store it sanitized.

        The summary request is removed from the log afterwards, whether or
        not the call succeeded.
        """
        self.messages.append(Message.user(TITLE_PROMPT))
        try:
            result = await self._provider.complete(list(self.messages), model=self._model)
        finally:
            self.messages.pop()

        title = sanitize_filename(result.content.strip() or "NO_TITLE")
        self.title = title
        return title

    def turn_count(self) -> int:
        """Number of user entries in the log."""
        return sum(1 for m in self.messages if m.role is Role.USER)

    def to_session_state(self) -> SessionState:
        return SessionState(
            messages=list(self.messages),
            model=self._model,
            stream=self.stream_mode,
            title=self.title,
            system_prompt=self.system_prompt,
            user_prompt=self.prompt_string,
        )

    def apply_session_state(self, state: SessionState) -> None:
        """Replace the persisted subset with a loaded session."""
        self.messages = list(state.messages)
        self.model = state.model
        self.stream_mode = state.stream
        self.title = state.title
        self.system_prompt = state.system_prompt
        if state.user_prompt:
            self.prompt_string = state.user_prompt
