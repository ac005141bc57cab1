"""LLM provider abstraction."""

from llmchat.core.llm.litellm_provider import LiteLLMProvider
from llmchat.core.llm.models import (
    AVAILABLE_MODELS,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    PREDEFINED_ROLES,
    QUERY_SYSTEM_PROMPT,
    ModelConfig,
    get_model_config,
    resolve_model,
    resolve_system_prompt,
)
from llmchat.core.llm.provider import (
    CompletionResult,
    LLMProvider,
    Message,
    Role,
    StreamChunk,
)

__all__ = [
    # Provider protocol and implementations
    "LLMProvider",
    "LiteLLMProvider",
    "CompletionResult",
    "Message",
    "Role",
    "StreamChunk",
    # Catalog
    "AVAILABLE_MODELS",
    "DEFAULT_MODEL",
    "DEFAULT_SYSTEM_PROMPT",
    "PREDEFINED_ROLES",
    "QUERY_SYSTEM_PROMPT",
    "ModelConfig",
    "get_model_config",
    "resolve_model",
    "resolve_system_prompt",
]
