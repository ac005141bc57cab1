"""LiteLLM provider implementation.

Supports the catalog models and anything else litellm understands:
- Gemini: "gemini/gemini-2.0-flash"
- DeepSeek: "deepseek/deepseek-chat"
- Local: "ollama/qwen2.5:14b"
- OpenAI-compatible endpoints via api_base (e.g. DashScope's qwen-max)

See https://docs.litellm.ai/docs/providers for full list.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import litellm

from llmchat.config.secrets import fetch_secret
from llmchat.core.llm.models import get_model_config
from llmchat.core.llm.provider import (
    CompletionResult,
    Message,
    StreamChunk,
)
from llmchat.logging import get_logger

log = get_logger("llm")


class LiteLLMProvider:
    """LLM provider using litellm for multi-provider support.

    Usage:
        provider = LiteLLMProvider("gemini/gemini-2.0-flash")

        # Per-call model override
        await provider.complete(messages, model="deepseek/deepseek-chat")

        # With custom base URL
        provider = LiteLLMProvider("openai/my-model", api_base="http://localhost:8000/v1")
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the provider.

        Args:
            model: Default model identifier
            api_key: API key (catalog env var / litellm env lookup if not provided)
            api_base: Custom API base URL
            **kwargs: Additional litellm options
        """
        self._model = model
        self._api_key = api_key
        self._api_base = api_base
        self._kwargs = kwargs

    @property
    def model(self) -> str:
        return self._model

    def _build_kwargs(
        self,
        messages: list[Message],
        *,
        model: str | None,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        """Build kwargs for litellm call."""
        model_id = model or self._model
        kwargs: dict[str, Any] = {
            "model": model_id,
            "messages": [m.to_dict() for m in messages],
            "max_tokens": max_tokens,
            "stream": stream,
            **self._kwargs,
        }

        api_key = self._api_key
        api_base = self._api_base
        catalog = get_model_config(model_id)
        if catalog:
            if api_key is None and catalog.env_var:
                api_key = fetch_secret(catalog.env_var)
            if api_base is None:
                api_base = catalog.api_base

        if api_key:
            kwargs["api_key"] = api_key
        if api_base:
            kwargs["api_base"] = api_base

        return kwargs

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        max_tokens: int = 4096,
    ) -> CompletionResult:
        """Generate a completion (non-streaming)."""
        kwargs = self._build_kwargs(messages, model=model, max_tokens=max_tokens, stream=False)
        log.debug("complete model=%s messages=%d", kwargs["model"], len(messages))

        response = await litellm.acompletion(**kwargs)

        content = response.choices[0].message.content or ""
        finish_reason = response.choices[0].finish_reason

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return CompletionResult(
            content=content,
            finish_reason=finish_reason,
            usage=usage,
        )

    async def stream(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        max_tokens: int = 4096,
    ) -> AsyncIterator[StreamChunk]:
        """Generate a streaming completion."""
        kwargs = self._build_kwargs(messages, model=model, max_tokens=max_tokens, stream=True)
        log.debug("stream model=%s messages=%d", kwargs["model"], len(messages))

        response = await litellm.acompletion(**kwargs)

        async for chunk in response:
            if chunk.choices and chunk.choices[0].delta:
                delta = chunk.choices[0].delta
                text = delta.content or ""
                finish_reason = chunk.choices[0].finish_reason

                yield StreamChunk(
                    text=text,
                    is_final=finish_reason is not None,
                    finish_reason=finish_reason,
                )
