"""Conversation state, persistence and cross-process signalling."""

from llmchat.session.conversation import (
    ConversationState,
    Done,
    TextChunk,
    TurnEvent,
    TurnResult,
)
from llmchat.session.signals import ExternalSignal, FileSignal, NullSignal
from llmchat.session.storage import (
    SessionState,
    SessionStorageError,
    SessionSummary,
    UnsafeSessionNameError,
    list_sessions,
    load_session,
    sanitize_filename,
    save_session,
)
from llmchat.session.vocabulary import Vocabulary

__all__ = [
    # Conversation
    "ConversationState",
    "Done",
    "TextChunk",
    "TurnEvent",
    "TurnResult",
    # Signals
    "ExternalSignal",
    "FileSignal",
    "NullSignal",
    # Storage
    "SessionState",
    "SessionStorageError",
    "SessionSummary",
    "UnsafeSessionNameError",
    "list_sessions",
    "load_session",
    "sanitize_filename",
    "save_session",
    # Vocabulary
    "Vocabulary",
]
