"""Core runtime modules."""

from llmchat.core.llm import LiteLLMProvider, LLMProvider, Message, Role

__all__ = [
    "LLMProvider",
    "LiteLLMProvider",
    "Message",
    "Role",
]
