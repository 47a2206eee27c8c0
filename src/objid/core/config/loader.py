"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic.alias_generators import to_camel

from .models import ObjIdConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: ObjIdConfig | None = None

_TRUE_VALUES = ("true", "1", "yes", "on")


def get_xdg_config_home() -> Path:
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/objid/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "objid" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to mcp-config.json in the working directory
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / "mcp-config.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge ``override`` into a copy of ``base``, recursing into nested dicts.

    Example:
        >>> deep_merge({"backend": {"url": "a", "apiKey": "k"}}, {"backend": {"url": "b"}})
        {'backend': {'url': 'b', 'apiKey': 'k'}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from a config file; None when missing, malformed or not an object."""
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Ignoring malformed config file {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return None
    return data


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        NINJA_BACKEND_URL - overrides backend.url
        NINJA_API_KEY - overrides backend.api_key
        NINJA_POLL_URL - overrides backend.poll_url
        NINJA_POLL_KEY - overrides backend.poll_key
        NINJA_INCLUDE_USERNAME - overrides defaults.include_user_name
        NINJA_VERBOSE_LOGGING - overrides defaults.verbose_logging
        MCP_MODE - overrides mode (lite, normal, full)
        OBJID_STATE_DIR - overrides state_dir

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()
    backend = dict(result.get("backend") or {})
    defaults = dict(result.get("defaults") or {})

    for env_name, key in (
        ("NINJA_BACKEND_URL", "url"),
        ("NINJA_API_KEY", "api_key"),
        ("NINJA_POLL_URL", "poll_url"),
        ("NINJA_POLL_KEY", "poll_key"),
    ):
        if value := os.environ.get(env_name):
            # Drop any camelCase spelling from files so the override wins
            backend.pop(to_camel(key), None)
            backend[key] = value

    for env_name, key in (
        ("NINJA_INCLUDE_USERNAME", "include_user_name"),
        ("NINJA_VERBOSE_LOGGING", "verbose_logging"),
    ):
        value = os.environ.get(env_name)
        if value is not None:
            defaults.pop(to_camel(key), None)
            defaults[key] = _env_flag(value)

    if mode := os.environ.get("MCP_MODE"):
        result["mode"] = mode

    if state_dir := os.environ.get("OBJID_STATE_DIR"):
        result.pop("stateDir", None)
        result["state_dir"] = state_dir

    result["backend"] = backend
    result["defaults"] = defaults
    return result


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> ObjIdConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (NINJA_*, MCP_MODE)
        2. Project config (mcp-config.json)
        3. User config (~/.config/objid/config.json)
        4. Model defaults

    Args:
        project_dir: Directory to load mcp-config.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated ObjIdConfig instance

    Raises:
        pydantic.ValidationError: If the merged config fails validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged: dict[str, Any] = {}

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = ObjIdConfig.model_validate(merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """Forget the cached configuration so the next load re-reads every layer."""
    global _config_cache
    _config_cache = None


__all__ = [
    "apply_env_overrides",
    "clear_cache",
    "deep_merge",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_json_file",
]
