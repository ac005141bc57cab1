"""Platform-aware path resolution.

Handles per-user locations for:
- Windows: %APPDATA%\\llmchat
- Unix: $XDG_CONFIG_HOME/llmchat, ~/.config/llmchat, or ~/.llmchat

Everything the client persists lives under that directory: the config
file, saved sessions, prompt history and the completion wordlist.
Cross-process scratch files (sentinels, transcript, reply mirror) live
in the configured temp directory instead.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "llmchat"
SHORT_NAME = ".llmchat"

SESSIONS_DIRNAME = "sessions"
HISTORY_FILENAME = "history.txt"
WORDLIST_FILENAME = "wordlist.txt"

# Scratch files shared with cooperating processes, relative to temp_dir
BUSY_FILENAME = "act"
ACK_FILENAME = "ai_ack"
TRANSCRIPT_FILENAME = "mic.md"
REPLY_FILENAME = "ai.md"
RECORDING_FILENAME = "output.wav"


def get_config_dir() -> Path:
    """Get the per-user config directory.

    Returns:
        Path to the directory. It may not exist yet.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return Path.home() / SHORT_NAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME

    home = Path.home()

    # Prefer ~/.config/llmchat if ~/.config exists
    xdg_default = home / ".config"
    if xdg_default.exists():
        return xdg_default / APP_NAME

    return home / SHORT_NAME


def get_user_config_path() -> Path:
    """Get the user-level config file path (may not exist)."""
    return get_config_dir() / CONFIG_FILENAME


def get_sessions_dir() -> Path:
    """Get the directory holding saved sessions (may not exist)."""
    return get_config_dir() / SESSIONS_DIRNAME


def get_history_path() -> Path:
    """Get the prompt history file path."""
    return get_config_dir() / HISTORY_FILENAME


def get_wordlist_path() -> Path:
    """Get the completion wordlist file path."""
    return get_config_dir() / WORDLIST_FILENAME


def get_temp_file_path(temp_dir: str | Path, filename: str) -> Path:
    """Join a scratch filename onto the configured temp directory."""
    return Path(temp_dir) / filename
