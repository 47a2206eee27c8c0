"""
Unit tests for configuration loading.

Tests multi-layer config merging, NINJA_* environment overrides,
mode normalization, caching and layered .env loading.
"""

import json
import os

import pytest
from pydantic import ValidationError

from objid.core.config import (
    DEFAULT_BACKEND_URL,
    ObjIdConfig,
    ServerMode,
    clear_cache,
    load_config,
)
from objid.core.config.env import load_layered_env
from objid.core.config.loader import (
    apply_env_overrides,
    deep_merge,
    get_user_config_path,
    load_json_file,
)

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_nested_merge(self):
        """Nested dicts are merged key by key."""
        base = {"backend": {"url": "a", "apiKey": "k"}, "mode": "lite"}
        override = {"backend": {"url": "b"}}
        assert deep_merge(base, override) == {
            "backend": {"url": "b", "apiKey": "k"},
            "mode": "lite",
        }

    def test_non_dict_values_replaced(self):
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_base_not_mutated(self):
        base = {"backend": {"url": "a"}}
        deep_merge(base, {"backend": {"url": "b"}})
        assert base == {"backend": {"url": "a"}}


class TestLoadJsonFile:
    """Test JSON file loading."""

    def test_missing_file(self, tmp_path):
        assert load_json_file(tmp_path / "missing.json") is None

    def test_invalid_json_logs_warning(self, tmp_path, caplog):
        """Invalid JSON returns None and logs a warning."""
        path = tmp_path / "broken.json"
        path.write_text("{ nope }")
        assert load_json_file(path) is None
        assert "Ignoring malformed config file" in caplog.text

    def test_non_object_ignored(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        assert load_json_file(path) is None


class TestApplyEnvOverrides:
    """Test NINJA_* and MCP_MODE environment overrides."""

    def test_backend_overrides_replace_camel_case_keys(self, monkeypatch):
        """An env override wins over the camelCase spelling from files."""
        monkeypatch.setenv("NINJA_API_KEY", "env-key")
        monkeypatch.setenv("NINJA_BACKEND_URL", "env.host")
        result = apply_env_overrides({"backend": {"apiKey": "file-key", "url": "file.host"}})
        assert result["backend"] == {"api_key": "env-key", "url": "env.host"}

    def test_multi_word_keys(self, monkeypatch):
        monkeypatch.setenv("NINJA_POLL_KEY", "env-poll")
        monkeypatch.setenv("NINJA_VERBOSE_LOGGING", "yes")
        result = apply_env_overrides(
            {"backend": {"pollKey": "file-poll"}, "defaults": {"verboseLogging": False}}
        )
        assert result["backend"]["poll_key"] == "env-poll"
        assert "pollKey" not in result["backend"]
        assert result["defaults"]["verbose_logging"] is True
        assert "verboseLogging" not in result["defaults"]

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("no", False)])
    def test_boolean_flags(self, monkeypatch, value, expected):
        monkeypatch.setenv("NINJA_INCLUDE_USERNAME", value)
        result = apply_env_overrides({"defaults": {"includeUserName": not expected}})
        assert result["defaults"] == {"include_user_name": expected}

    def test_mode_and_state_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MCP_MODE", "full")
        monkeypatch.setenv("OBJID_STATE_DIR", str(tmp_path / "elsewhere"))
        result = apply_env_overrides({"stateDir": "/ignored"})
        assert result["mode"] == "full"
        assert result["state_dir"] == str(tmp_path / "elsewhere")
        assert "stateDir" not in result

    def test_no_env_leaves_values(self, monkeypatch):
        monkeypatch.delenv("OBJID_STATE_DIR", raising=False)
        result = apply_env_overrides({"backend": {"url": "file.host"}, "mode": "lite"})
        assert result["backend"] == {"url": "file.host"}
        assert result["mode"] == "lite"


# ==============================================================================
# Model Tests
# ==============================================================================


class TestObjIdConfig:
    """Test config model defaults and validation."""

    def test_defaults(self):
        config = ObjIdConfig()
        assert config.backend.url == DEFAULT_BACKEND_URL
        assert config.backend.api_key == ""
        assert config.backend.timeout == 30.0
        assert config.backend.max_retries == 3
        assert config.defaults.include_user_name is True
        assert config.mode is ServerMode.NORMAL

    @pytest.mark.parametrize("raw,expected", [("LITE", ServerMode.LITE), (" Full ", ServerMode.FULL)])
    def test_mode_case_insensitive(self, raw, expected):
        assert ObjIdConfig(mode=raw).mode is expected

    def test_unknown_mode_falls_back_to_normal(self):
        assert ObjIdConfig(mode="turbo").mode is ServerMode.NORMAL

    def test_trailing_slash_stripped(self):
        config = ObjIdConfig(backend={"url": "https://host.test/", "pollUrl": "poll.test/"})
        assert config.backend.url == "https://host.test"
        assert config.backend.poll_url == "poll.test"

    def test_invalid_timeout_rejected(self):
        with pytest.raises(ValidationError):
            ObjIdConfig(backend={"timeout": 0})

    def test_state_path(self, tmp_path):
        config = ObjIdConfig(state_dir=tmp_path)
        assert config.get_state_path() == tmp_path / "config.json"


# ==============================================================================
# Loader Tests
# ==============================================================================


class TestLoadConfig:
    """Test layered loading."""

    def write_user_config(self, data):
        path = get_user_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data))

    def test_defaults_only(self, tmp_path):
        config = load_config(project_dir=tmp_path)
        assert config.backend.url == DEFAULT_BACKEND_URL
        assert config.state_dir == tmp_path / "state"

    def test_precedence(self, tmp_path, monkeypatch):
        """env > project mcp-config.json > user config."""
        self.write_user_config({"backend": {"url": "user.host", "apiKey": "user-key"}, "mode": "lite"})
        (tmp_path / "mcp-config.json").write_text(
            json.dumps({"backend": {"url": "project.host"}, "mode": "full"})
        )
        monkeypatch.setenv("MCP_MODE", "normal")

        config = load_config(project_dir=tmp_path)

        assert config.backend.url == "project.host"
        assert config.backend.api_key == "user-key"
        assert config.mode is ServerMode.NORMAL

    def test_cache(self, tmp_path, monkeypatch):
        first = load_config(project_dir=tmp_path)
        monkeypatch.setenv("NINJA_API_KEY", "changed")
        assert load_config(project_dir=tmp_path) is first
        assert load_config(project_dir=tmp_path, use_cache=False).backend.api_key == "changed"

    def test_clear_cache(self, tmp_path):
        first = load_config(project_dir=tmp_path)
        clear_cache()
        assert load_config(project_dir=tmp_path) is not first


class TestLoadLayeredEnv:
    """Test .env layering."""

    def test_project_overrides_user_but_not_os(self, tmp_path, monkeypatch):
        user_env = tmp_path / "user.env"
        project_env = tmp_path / "project.env"
        user_env.write_text("NINJA_API_KEY=user\nNINJA_POLL_KEY=user-poll\n")
        project_env.write_text("NINJA_API_KEY=project\nNINJA_BACKEND_URL=project.host\n")
        monkeypatch.setenv("NINJA_BACKEND_URL", "os.host")
        for name in ("NINJA_API_KEY", "NINJA_POLL_KEY"):
            monkeypatch.setenv(name, "placeholder")
            monkeypatch.delenv(name)

        load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])

        assert os.environ["NINJA_API_KEY"] == "project"
        assert os.environ["NINJA_POLL_KEY"] == "user-poll"
        assert os.environ["NINJA_BACKEND_URL"] == "os.host"

    def test_missing_files_ignored(self, tmp_path):
        load_layered_env(project_dir=tmp_path)
        assert "NINJA_API_KEY" not in os.environ
