"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion between dicts and the typed Config dataclass
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from llmchat.config.merge import merge_configs
from llmchat.config.paths import get_user_config_path
from llmchat.config.schema import (
    DEFAULT_BUILD_COMMAND,
    DEFAULT_BUILD_SUCCESS_MARKER,
    BuildConfig,
    Config,
    LoggingConfig,
    WatcherConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("llmchat.config")

# Global cached config
_cached_config: Config | None = None

_KNOWN_KEYS = {
    "default_model",
    "stream",
    "temp_dir",
    "user_prompt",
    "aliases",
    "watcher",
    "build",
    "logging",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Note: API keys are NOT loaded here - use fetch_secret() for secrets.

    Returns:
        Config dict with values from environment.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("LLMCHAT_LOG")
    if log_path:
        overrides["logging"] = {"file": log_path}

    temp_dir = os.environ.get("LLMCHAT_TEMP_DIR")
    if temp_dir:
        overrides["temp_dir"] = temp_dir

    user_prompt = os.environ.get("USER_PROMPT")
    if user_prompt:
        overrides["user_prompt"] = user_prompt

    model = os.environ.get("LLMCHAT_MODEL")
    if model:
        overrides["default_model"] = model

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.
    """
    watcher_data = data.get("watcher") or {}
    watcher = WatcherConfig(
        poll_interval=float(watcher_data.get("poll_interval", 2.0)),
    )

    build_data = data.get("build") or {}
    command = build_data.get("command", DEFAULT_BUILD_COMMAND)
    if isinstance(command, str):
        command = command.split()
    build = BuildConfig(
        command=[str(part) for part in command],
        success_marker=build_data.get("success_marker", DEFAULT_BUILD_SUCCESS_MARKER),
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    aliases_data = data.get("aliases")
    if not isinstance(aliases_data, dict):
        aliases_data = {}
    aliases = {str(name): str(model) for name, model in aliases_data.items() if model}

    stream = data.get("stream")

    return Config(
        default_model=data.get("default_model"),
        stream=bool(stream) if stream is not None else None,
        temp_dir=data.get("temp_dir") or tempfile.gettempdir(),
        user_prompt=data.get("user_prompt"),
        aliases=aliases,
        watcher=watcher,
        build=build,
        logging=logging_config,
        extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
    )


def config_to_dict(config: Config) -> dict[str, Any]:
    """Convert a Config back into a plain dict suitable for YAML output.

    Unset optional values are omitted so the written file stays minimal.
    """
    data: dict[str, Any] = dict(config.extra)

    if config.default_model is not None:
        data["default_model"] = config.default_model
    if config.stream is not None:
        data["stream"] = config.stream
    if config.temp_dir != tempfile.gettempdir():
        data["temp_dir"] = config.temp_dir
    if config.user_prompt is not None:
        data["user_prompt"] = config.user_prompt
    if config.aliases:
        data["aliases"] = dict(config.aliases)
    if config.watcher.poll_interval != WatcherConfig().poll_interval:
        data["watcher"] = {"poll_interval": config.watcher.poll_interval}
    if config.build != BuildConfig():
        data["build"] = {
            "command": list(config.build.command),
            "success_marker": config.build.success_marker,
        }

    log_data = {
        k: v
        for k, v in (
            ("level", config.logging.level),
            ("verbose", config.logging.verbose),
            ("file", config.logging.file),
        )
        if v is not None
    }
    if log_data:
        data["logging"] = log_data

    return data


def load_config(config_path: Path | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. The config file (config_path, or the user config file)

    Args:
        config_path: Explicit config file; bypasses the cache.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and config_path is None:
        return _cached_config

    path = config_path or get_user_config_path()
    configs: list[dict[str, Any]] = []

    file_data = load_yaml_file(path)
    if file_data:
        _log.debug("Loaded config from %s", path)
        configs.append(file_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    if config_path is None:
        _cached_config = config

    return config


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """Write config to the user config file (or config_path).

    Returns:
        The path written.
    """
    path = config_path or get_user_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Keep keys we do not model that are already on disk
    data = merge_configs(load_yaml_file(path), config_to_dict(config))

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    reset_config()
    return path


def get_config() -> Config:
    """Get the cached global config, loading it if needed."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config.

    Useful for testing or forcing a reload.
    """
    global _cached_config
    _cached_config = None
