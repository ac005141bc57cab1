"""LLM provider protocol and base types."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """A message in an LLM conversation.

    Attributes:
        role: The role (system, user, assistant)
        content: The message content
    """

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Build a message from its wire form.

        Raises:
            ValueError: unknown role or non-string content.
        """
        content = data.get("content")
        if not isinstance(content, str):
            raise ValueError(f"message content must be a string, got {type(content).__name__}")
        return cls(Role(data.get("role")), content)


@dataclass(slots=True)
class StreamChunk:
    """A chunk from streaming LLM response."""

    text: str
    is_final: bool = False
    finish_reason: str | None = None


@dataclass(slots=True)
class CompletionResult:
    """Result from a non-streaming completion."""

    content: str
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers.

    Implementations should support both streaming and non-streaming completions.
    The model can be overridden per call because the active model of a chat
    session changes at runtime.
    """

    @property
    def model(self) -> str:
        """The default model identifier."""
        ...

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        """Generate a completion (non-streaming).

        Args:
            messages: Conversation history
            model: Model override for this call
            max_tokens: Maximum tokens to generate

        Returns:
            CompletionResult with the generated content
        """
        ...

    def stream(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        max_tokens: int = 4096,
    ) -> AsyncIterator[StreamChunk]:
        """Generate a streaming completion.

        Args:
            messages: Conversation history
            model: Model override for this call
            max_tokens: Maximum tokens to generate

        Yields:
            StreamChunk objects as they arrive
        """
        ...
