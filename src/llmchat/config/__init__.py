"""Configuration management for llmchat.

Provides YAML-based configuration with:
- User-level config (~/.config/llmchat/config.yaml or %APPDATA%)
- Environment variable overrides (highest priority)

Example usage:
    from llmchat.config import load_config

    config = load_config()
    print(config.default_model, config.temp_dir)
"""

from llmchat.config.loader import (
    get_config,
    load_config,
    reset_config,
    save_config,
)
from llmchat.config.paths import (
    get_config_dir,
    get_history_path,
    get_sessions_dir,
    get_temp_file_path,
    get_user_config_path,
    get_wordlist_path,
)
from llmchat.config.schema import (
    BuildConfig,
    Config,
    LoggingConfig,
    WatcherConfig,
)
from llmchat.config.secrets import (
    clear_secret_cache,
    fetch_secret,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "save_config",
    # Schema types
    "BuildConfig",
    "LoggingConfig",
    "WatcherConfig",
    # Secret management
    "fetch_secret",
    "clear_secret_cache",
    # Path utilities
    "get_config_dir",
    "get_history_path",
    "get_sessions_dir",
    "get_temp_file_path",
    "get_user_config_path",
    "get_wordlist_path",
]
