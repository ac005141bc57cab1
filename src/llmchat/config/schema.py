"""Configuration schema dataclasses for llmchat.

All fields are optional to support partial configs that merge together.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from typing import Any

DEFAULT_BUILD_COMMAND = ["cargo", "build", "--release"]
DEFAULT_BUILD_SUCCESS_MARKER = "Finished `release`"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0..4, overrides level
    file: str | None = None  # Log file path


@dataclass
class WatcherConfig:
    """Transcript watcher configuration.

    Example config.yaml:
        watcher:
          poll_interval: 2.0
    """

    poll_interval: float = 2.0


@dataclass
class BuildConfig:
    """Build-and-query integration configuration.

    Example config.yaml:
        build:
          command: ["make", "release"]
          success_marker: "Build finished"
    """

    command: list[str] = field(default_factory=lambda: list(DEFAULT_BUILD_COMMAND))
    success_marker: str = DEFAULT_BUILD_SUCCESS_MARKER


@dataclass
class Config:
    """Root configuration object."""

    default_model: str | None = None
    stream: bool | None = None
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    user_prompt: str | None = None

    # Alias name -> model id (e.g. "zero": "xai/grok-2")
    aliases: dict[str, str] = field(default_factory=dict)

    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level keys, kept so save_config round-trips them
    extra: dict[str, Any] = field(default_factory=dict)
