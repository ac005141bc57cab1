"""Secret management for llmchat.

Provides centralized secret fetching with dotenv support.
Secrets are loaded from .env.secrets files and cached for performance.

Priority order:
1. Environment variables (os.environ)
2. .env.secrets file in the current directory, then in the config dir
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values

from llmchat.config.paths import get_config_dir

SECRETS_FILE = ".env.secrets"


@lru_cache(maxsize=1)
def _load_secrets(secrets_path: Path | None = None) -> dict[str, str | None]:
    """Load and cache the first .env.secrets file found."""
    if secrets_path:
        if secrets_path.exists():
            return dotenv_values(secrets_path)
        return {}

    for candidate in (Path(SECRETS_FILE), get_config_dir() / SECRETS_FILE):
        if candidate.exists():
            return dotenv_values(candidate)
    return {}


def fetch_secret(
    key: str,
    default: str | None = None,
    secrets_path: Path | None = None,
) -> str | None:
    """Fetch a secret from environment or .env.secrets.

    Args:
        key: Environment variable name (e.g., "GEMINI_API_KEY")
        default: Default value if not found
        secrets_path: Optional path to .env.secrets file

    Returns:
        Secret value or default if not found.
    """
    value = os.environ.get(key)
    if value is not None:
        return value

    secrets = _load_secrets(secrets_path)
    if secrets.get(key) is not None:
        return secrets[key]

    return default


def clear_secret_cache() -> None:
    """Clear the secrets cache."""
    _load_secrets.cache_clear()
