"""Busy/ready signalling for cooperating processes.

A separate dictation tool watches two sentinel files in the temp directory
to know whether the assistant is working on a request:

- ``act`` exists (content ``busy``) while a request is in flight
- ``ai_ack`` (content ``OK``) is written once the reply is available

The channel is best-effort: failures are logged and never interrupt a turn,
and nothing waits for the other side to acknowledge.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from llmchat.config.paths import ACK_FILENAME, BUSY_FILENAME, get_temp_file_path
from llmchat.logging import get_logger

log = get_logger("signals")

BUSY_MARKER = "busy"
ACK_MARKER = "OK"


@runtime_checkable
class ExternalSignal(Protocol):
    """Port for announcing request state to external processes."""

    def announce_busy(self) -> None:
        """Announce that a model request is about to start."""
        ...

    def announce_ready(self) -> None:
        """Announce that the reply (or a handled error) is available."""
        ...


class FileSignal:
    """ExternalSignal backed by sentinel files."""

    def __init__(self, busy_path: Path, ack_path: Path) -> None:
        self.busy_path = busy_path
        self.ack_path = ack_path

    @classmethod
    def in_temp_dir(cls, temp_dir: str | Path) -> FileSignal:
        """Create a signal using the standard sentinel names under temp_dir."""
        return cls(
            busy_path=get_temp_file_path(temp_dir, BUSY_FILENAME),
            ack_path=get_temp_file_path(temp_dir, ACK_FILENAME),
        )

    def announce_busy(self) -> None:
        try:
            self.busy_path.write_text(BUSY_MARKER, encoding="utf-8")
        except OSError as e:
            log.warning("Failed to write %s: %s", self.busy_path, e)

    def announce_ready(self) -> None:
        try:
            self.busy_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Failed to remove %s: %s", self.busy_path, e)
        try:
            self.ack_path.write_text(ACK_MARKER, encoding="utf-8")
        except OSError as e:
            log.warning("Failed to write %s: %s", self.ack_path, e)


class NullSignal:
    """ExternalSignal that does nothing (one-shot queries, tests)."""

    def announce_busy(self) -> None:
        pass

    def announce_ready(self) -> None:
        pass
