"""Shared test utilities for llmchat tests."""

from __future__ import annotations

import re
import threading
from collections.abc import AsyncIterator, Iterable
from typing import Any

from llmchat.core.llm.provider import CompletionResult, Message, StreamChunk


def create_mock_llm_response(content: str = "Test response") -> Any:
    """Create a mock LiteLLM response object.

    Args:
        content: Response content

    Returns:
        Mock mimicking litellm response structure
    """
    from unittest.mock import Mock

    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message = Mock()
    response.choices[0].message.content = content
    response.choices[0].finish_reason = "stop"

    response.usage = Mock()
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 20
    response.usage.total_tokens = 30

    return response


def create_mock_llm_stream_chunk(text: str = "chunk", is_final: bool = False) -> Any:
    """Create a mock streaming chunk from LiteLLM."""
    from unittest.mock import Mock

    chunk = Mock()
    chunk.choices = [Mock()]
    chunk.choices[0].delta = Mock()
    chunk.choices[0].delta.content = text
    chunk.choices[0].finish_reason = "stop" if is_final else None

    return chunk


class MockStream:
    """Async iterator over prepared litellm stream chunks."""

    def __init__(self, chunks: Iterable[Any]) -> None:
        self._chunks = list(chunks)

    def __aiter__(self) -> MockStream:
        return self

    async def __anext__(self) -> Any:
        if not self._chunks:
            raise StopAsyncIteration
        return self._chunks.pop(0)


class FakeProvider:
    """LLMProvider returning canned replies and recording every call.

    The last reply is repeated once the list runs out. If ``error`` is set
    every call raises it.
    """

    def __init__(
        self,
        replies: Iterable[str] = ("reply",),
        *,
        model: str = "fake/model",
        error: Exception | None = None,
    ) -> None:
        self._model = model
        self.replies = list(replies)
        self.error = error
        self.calls: list[list[Message]] = []
        self.models: list[str | None] = []

    @property
    def model(self) -> str:
        return self._model

    def _next_reply(self) -> str:
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        self.calls.append(list(messages))
        self.models.append(model)
        return CompletionResult(content=self._next_reply(), finish_reason="stop")

    async def stream(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        max_tokens: int = 4096,
    ) -> AsyncIterator[StreamChunk]:
        self.calls.append(list(messages))
        self.models.append(model)
        text = self._next_reply()
        for piece in re.findall(r"\S+\s*|\s+", text):
            yield StreamChunk(text=piece)
        yield StreamChunk(text="", is_final=True, finish_reason="stop")


class ScriptedReader:
    """LineReader stand-in that replays prepared input.

    Items may be strings or exceptions to raise. Once the script runs out
    it raises EOFError. If ``gate`` is given, every read first waits for it.
    """

    def __init__(self, lines: Iterable[str | BaseException], gate: threading.Event | None = None) -> None:
        self.lines = list(lines)
        self.gate = gate
        self.prompts: list[str] = []
        self.history: list[str] = []

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.gate is not None and not self.gate.wait(timeout=5):
            raise EOFError
        if not self.lines:
            raise EOFError
        item = self.lines.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def add_history(self, line: str) -> None:
        self.history.append(line)


class RecordingSignal:
    """ExternalSignal that records the order of announcements."""

    def __init__(self) -> None:
        self.events: list[str] = []

    def announce_busy(self) -> None:
        self.events.append("busy")

    def announce_ready(self) -> None:
        self.events.append("ready")
