"""Tests for the configuration module."""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

import pytest
import yaml

from llmchat.config import (
    Config,
    fetch_secret,
    get_config,
    get_history_path,
    get_sessions_dir,
    get_temp_file_path,
    load_config,
    reset_config,
    save_config,
)
from llmchat.config.merge import deep_merge, merge_configs
from llmchat.config.paths import get_config_dir, get_user_config_path
from llmchat.config.schema import DEFAULT_BUILD_COMMAND, BuildConfig


class TestDeepMerge:
    """Test the deep merge algorithm."""

    def test_simple_override(self) -> None:
        """Test that override values replace base values."""
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        result = deep_merge(base, override)
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self) -> None:
        """Test that nested dicts are recursively merged."""
        base = {"aliases": {"zero": "xai/grok-2", "one": "gemini/gemini-2.0-flash"}}
        override = {"aliases": {"zero": "deepseek/deepseek-chat"}}
        result = deep_merge(base, override)
        assert result["aliases"]["zero"] == "deepseek/deepseek-chat"
        assert result["aliases"]["one"] == "gemini/gemini-2.0-flash"

    def test_none_does_not_override(self) -> None:
        """Test that None values in override don't replace base values."""
        result = deep_merge({"a": 1}, {"a": None})
        assert result["a"] == 1

    def test_list_replaced_not_merged(self) -> None:
        """Test that lists are replaced, not concatenated."""
        result = deep_merge({"items": [1, 2, 3]}, {"items": [4, 5]})
        assert result["items"] == [4, 5]

    def test_base_not_mutated(self) -> None:
        """Test the inputs are left untouched."""
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}

    def test_merge_configs_multiple(self) -> None:
        """Test merging multiple configs in order."""
        result = merge_configs({"a": 1, "b": 2}, {"b": 3}, {}, {"c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}


class TestConfigPaths:
    """Test platform-aware path resolution."""

    def test_windows_user_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test user config path on Windows."""
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", "C:\\Users\\Test\\AppData\\Roaming")

        path = get_user_config_path()
        assert "AppData" in str(path)
        assert "llmchat" in str(path)
        assert path.name == "config.yaml"

    def test_unix_user_path_xdg(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test user config path respects XDG_CONFIG_HOME."""
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", "/home/test/.config-custom")

        assert get_config_dir() == Path("/home/test/.config-custom/llmchat")

    def test_unix_fallback_dot_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test ~/.llmchat is used when there is no ~/.config."""
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".llmchat"

        (tmp_path / ".config").mkdir()
        assert get_config_dir() == tmp_path / ".config" / "llmchat"

    def test_data_paths_under_config_dir(self, isolated_config_dir: Path) -> None:
        """Test sessions and history live in the config dir."""
        assert get_sessions_dir() == isolated_config_dir / "sessions"
        assert get_history_path() == isolated_config_dir / "history.txt"

    def test_temp_file_path(self) -> None:
        """Test scratch files are joined onto the temp dir."""
        assert get_temp_file_path("/tmp/x", "mic.md") == Path("/tmp/x/mic.md")


class TestConfigLoading:
    """Test configuration loading."""

    @pytest.fixture
    def config_file(self, isolated_config_dir: Path) -> Path:
        isolated_config_dir.mkdir(parents=True, exist_ok=True)
        return isolated_config_dir / "config.yaml"

    def test_load_yaml_config(self, config_file: Path) -> None:
        """Test loading a valid YAML config file."""
        config_file.write_text(
            """
default_model: xai/grok-2
stream: true
temp_dir: /var/tmp/chat
aliases:
  zero: xai/grok-2
  four: deepseek/deepseek-chat
watcher:
  poll_interval: 0.5
"""
        )
        config = load_config()
        assert config.default_model == "xai/grok-2"
        assert config.stream is True
        assert config.temp_dir == "/var/tmp/chat"
        assert config.aliases == {"zero": "xai/grok-2", "four": "deepseek/deepseek-chat"}
        assert config.watcher.poll_interval == 0.5

    def test_missing_file_uses_defaults(self) -> None:
        """Test that a missing config file gives defaults."""
        config = load_config()
        assert isinstance(config, Config)
        assert config.default_model is None
        assert config.stream is None
        assert config.temp_dir == tempfile.gettempdir()
        assert config.build.command == DEFAULT_BUILD_COMMAND

    def test_invalid_yaml_uses_defaults(self, config_file: Path) -> None:
        """Test that invalid YAML falls back to defaults."""
        config_file.write_text("invalid: yaml: :")
        config = load_config()
        assert config.default_model is None

    def test_non_mapping_yaml_uses_defaults(self, config_file: Path) -> None:
        """Test that a YAML list at top level is ignored."""
        config_file.write_text("- one\n- two\n")
        assert load_config().aliases == {}

    def test_env_overrides_config(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables win over the file."""
        config_file.write_text("default_model: xai/grok-2\ntemp_dir: /from/file\n")
        monkeypatch.setenv("LLMCHAT_MODEL", "gemini/gemini-2.0-flash")
        monkeypatch.setenv("LLMCHAT_TEMP_DIR", "/from/env")
        monkeypatch.setenv("USER_PROMPT", "$ ")
        monkeypatch.setenv("LLMCHAT_LOG", "/tmp/test.log")

        config = load_config()

        assert config.default_model == "gemini/gemini-2.0-flash"
        assert config.temp_dir == "/from/env"
        assert config.user_prompt == "$ "
        assert config.logging.file == "/tmp/test.log"

    def test_build_command_string_split(self, config_file: Path) -> None:
        """Test a string build command is split on whitespace."""
        config_file.write_text("build:\n  command: make release\n  success_marker: done\n")
        config = load_config()
        assert config.build == BuildConfig(command=["make", "release"], success_marker="done")

    def test_empty_alias_dropped(self, config_file: Path) -> None:
        """Test aliases with no model are ignored."""
        config_file.write_text("aliases:\n  zero: xai/grok-2\n  blank:\n")
        assert load_config().aliases == {"zero": "xai/grok-2"}

    def test_extra_fields_preserved(self, config_file: Path) -> None:
        """Test that unknown config fields are preserved in extra."""
        config_file.write_text("custom_field: custom_value\nnested:\n  field: value\n")
        config = load_config()
        assert config.extra["custom_field"] == "custom_value"
        assert config.extra["nested"]["field"] == "value"

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test loading from an explicit file bypasses the user config."""
        path = tmp_path / "other.yaml"
        path.write_text("default_model: deepseek/deepseek-chat\n")
        assert load_config(path).default_model == "deepseek/deepseek-chat"


class TestSaveConfig:
    """Test writing the config file."""

    def test_round_trip(self, isolated_config_dir: Path) -> None:
        """Test saved values load back."""
        path = save_config(Config(default_model="xai/grok-2", stream=True))

        assert path == isolated_config_dir / "config.yaml"
        config = load_config()
        assert config.default_model == "xai/grok-2"
        assert config.stream is True

    def test_minimal_output(self) -> None:
        """Test unset values are not written."""
        path = save_config(Config(default_model="xai/grok-2"))
        assert yaml.safe_load(path.read_text()) == {"default_model": "xai/grok-2"}

    def test_keeps_existing_keys(self, isolated_config_dir: Path) -> None:
        """Test saving only replaces the keys that were set."""
        isolated_config_dir.mkdir(parents=True)
        (isolated_config_dir / "config.yaml").write_text(
            "default_model: xai/grok-2\naliases:\n  zero: xai/grok-2\ncustom: 1\n"
        )

        save_config(Config(default_model="gemini/gemini-2.0-flash"))

        config = load_config()
        assert config.default_model == "gemini/gemini-2.0-flash"
        assert config.aliases == {"zero": "xai/grok-2"}
        assert config.extra == {"custom": 1}

    def test_save_resets_cache(self) -> None:
        """Test a save is visible to the next get_config."""
        before = get_config()
        save_config(Config(default_model="xai/grok-2"))
        after = get_config()
        assert before is not after
        assert after.default_model == "xai/grok-2"


class TestSecrets:
    """Test secret lookup."""

    def test_env_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables are used first."""
        monkeypatch.setenv("XAI_API_KEY", "env-key")
        assert fetch_secret("XAI_API_KEY") == "env-key"

    def test_secrets_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a .env.secrets file in the working directory is read."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("XAI_API_KEY", raising=False)
        (tmp_path / ".env.secrets").write_text("XAI_API_KEY=file-key\n")

        assert fetch_secret("XAI_API_KEY") == "file-key"

    def test_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default is returned when nothing is set."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LLMCHAT_NOPE", raising=False)
        assert fetch_secret("LLMCHAT_NOPE", default="x") == "x"


class TestConfigCaching:
    """Test config caching behavior."""

    def test_get_config_caches(self) -> None:
        """Test that get_config returns cached config."""
        assert get_config() is get_config()

    def test_reset_clears_cache(self) -> None:
        """Test that reset_config clears the cache."""
        config1 = get_config()
        reset_config()
        assert get_config() is not config1

    def test_explicit_path_not_cached(self, tmp_path: Path) -> None:
        """Test that a config loaded from an explicit path is not cached."""
        explicit = load_config(tmp_path / "missing.yaml")
        assert explicit is not get_config()
