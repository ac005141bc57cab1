"""Watching of files shared with external processes."""

from llmchat.watching.locking import LockError, exclusive_lock, read_locked
from llmchat.watching.transcript import (
    DEFAULT_POLL_INTERVAL,
    TranscriptWatcher,
    make_transcript_queue,
)

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "LockError",
    "TranscriptWatcher",
    "exclusive_lock",
    "make_transcript_queue",
    "read_locked",
]
