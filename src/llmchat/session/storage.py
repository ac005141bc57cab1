"""Session persistence storage.

Handles saving and loading chat sessions to/from YAML files in:
  <config dir>/sessions/<name>

Session files contain:
- version: Schema version (currently 1)
- messages: List of {role, content}, system prompt first
- model: Active model id
- stream: Whether replies were streamed
- title: Optional human-readable title
- system_prompt: Custom system prompt text ("" if unchanged)
- user_prompt: Input prompt string

Only messages and model are required on load; everything else falls back
to defaults so files written by older versions still load.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from llmchat.core.llm.provider import Message, Role
from llmchat.logging import get_logger

log = get_logger("storage")

SCHEMA_VERSION = 1


class SessionStorageError(Exception):
    """A session could not be saved, listed or loaded."""


class UnsafeSessionNameError(SessionStorageError, ValueError):
    """A session name would resolve outside the sessions directory."""


@dataclass
class SessionState:
    """The persisted subset of a conversation."""

    messages: list[Message]
    model: str
    stream: bool = False
    title: str | None = None
    system_prompt: str = ""
    user_prompt: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SCHEMA_VERSION,
            "messages": [m.to_dict() for m in self.messages],
            "model": self.model,
            "stream": self.stream,
            "title": self.title,
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
        }

    @classmethod
    def from_dict(cls, data: Any) -> SessionState:
        """Validate and convert a decoded session file.

        Raises:
            SessionStorageError: required fields missing or malformed.
        """
        if not isinstance(data, dict):
            raise SessionStorageError("session file is not a mapping")

        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list) or not raw_messages:
            raise SessionStorageError("session file has no messages")
        try:
            messages = [Message.from_dict(m) for m in raw_messages]
        except (AttributeError, TypeError, ValueError) as e:
            raise SessionStorageError(f"invalid message in session file: {e}") from e
        if messages[0].role is not Role.SYSTEM:
            raise SessionStorageError("first message of a session must be the system prompt")

        model = data.get("model")
        if not isinstance(model, str) or not model:
            raise SessionStorageError("session file has no model")

        title = data.get("title")
        return cls(
            messages=messages,
            model=model,
            stream=bool(data.get("stream", False)),
            title=title if isinstance(title, str) and title else None,
            system_prompt=str(data.get("system_prompt") or ""),
            user_prompt=str(data.get("user_prompt") or ""),
        )


@dataclass
class SessionSummary:
    """Lightweight session metadata for listing."""

    name: str
    path: Path
    modified: datetime
    model: str | None = field(default=None)


def sanitize_filename(name: str) -> str:
    """Turn a title or user-supplied name into a single path segment.

    Surrounding quotes are stripped, spaces become underscores, and path
    separators become underscores so a name can never point elsewhere.

    >>> sanitize_filename('"My Title"')
    'My_Title'
    """
    cleaned = name.strip()
    for quote in ('"', "'"):
        if len(cleaned) >= 2 and cleaned.startswith(quote) and cleaned.endswith(quote):
            cleaned = cleaned.strip(quote)
    cleaned = cleaned.replace(" ", "_")
    for sep in ("/", "\\", "\0"):
        cleaned = cleaned.replace(sep, "_")
    return cleaned


def session_path(sessions_dir: Path, name: str) -> Path:
    """Resolve a session name to its file inside sessions_dir.

    Raises:
        UnsafeSessionNameError: the sanitized name is empty, a dot name,
            or would not land directly inside sessions_dir.
    """
    filename = sanitize_filename(name)
    if filename in ("", ".", ".."):
        raise UnsafeSessionNameError(f"invalid session name: {name!r}")

    base = sessions_dir.resolve()
    path = (base / filename).resolve()
    if path.parent != base:
        raise UnsafeSessionNameError(f"session name escapes the sessions directory: {name!r}")
    return path


def save_session(sessions_dir: Path, name: str, state: SessionState) -> Path:
    """Save a session to a YAML file.

    Performs atomic write by writing to a temp file first.

    Returns:
        Path to the saved session file.

    Raises:
        UnsafeSessionNameError: bad name.
        SessionStorageError: the file could not be written.
    """
    path = session_path(sessions_dir, name)
    temp_path = path.with_name(path.name + ".tmp")

    try:
        sessions_dir.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8") as f:
            yaml.dump(state.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        os.replace(temp_path, path)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        raise SessionStorageError(f"failed to save session {path.name}: {e}") from e

    log.debug("Saved session to %s", path)
    return path


def load_session(sessions_dir: Path, name: str) -> SessionState:
    """Load and validate a session file.

    Raises:
        UnsafeSessionNameError: bad name.
        SessionStorageError: missing, unreadable or invalid file.
    """
    path = session_path(sessions_dir, name)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise SessionStorageError(f"no saved session named {path.name}") from e
    except yaml.YAMLError as e:
        raise SessionStorageError(f"session file {path.name} is not valid YAML: {e}") from e
    except OSError as e:
        raise SessionStorageError(f"failed to read session {path.name}: {e}") from e

    return SessionState.from_dict(data)


def extract_model_name(path: Path) -> str | None:
    """Read just the model id out of a session file, or None."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None
    model = data.get("model") if isinstance(data, dict) else None
    return model if isinstance(model, str) else None


def list_sessions(sessions_dir: Path) -> list[SessionSummary]:
    """List saved sessions, oldest first.

    Raises:
        SessionStorageError: the directory exists but cannot be read.
    """
    if not sessions_dir.exists():
        return []

    summaries: list[SessionSummary] = []
    try:
        for path in sessions_dir.iterdir():
            if not path.is_file() or path.name.endswith(".tmp"):
                continue
            summaries.append(
                SessionSummary(
                    name=path.name,
                    path=path,
                    modified=datetime.fromtimestamp(path.stat().st_mtime),
                    model=extract_model_name(path),
                )
            )
    except OSError as e:
        raise SessionStorageError(f"failed to list sessions in {sessions_dir}: {e}") from e

    summaries.sort(key=lambda s: (s.modified, s.name))
    return summaries
