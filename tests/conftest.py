"""Root pytest configuration for all tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from llmchat.config import reset_config
from llmchat.config.secrets import clear_secret_cache
from llmchat.logging import reset_logging

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="session")
def anyio_backend():
    """Set anyio backend to asyncio."""
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the per-user config dir at a temp dir and drop cached state."""
    config_home = tmp_path / "config-home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    for var in ("LLMCHAT_LOG", "LLMCHAT_TEMP_DIR", "LLMCHAT_MODEL", "USER_PROMPT"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    clear_secret_cache()
    yield config_home / "llmchat"
    reset_config()
    clear_secret_cache()
    reset_logging()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    """Plain-text console writing into the ``output`` buffer."""
    return Console(file=output, width=120, color_system=None, force_terminal=False)
