"""
.env support for backend credentials.

NINJA_* credentials rarely belong in a shell profile, so they may be kept
in a user-level ``$XDG_CONFIG_HOME/objid/.env`` and a ``.env`` next to the
workspace. Resolution order, highest first:

  process environment > project .env > user .env
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def user_env_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "objid" / ".env"


def _read_env(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    return {k: v for k, v in dotenv_values(path).items() if k and v is not None}


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """
    Export variables from the user and project .env files.

    Args:
        project_dir: Folder holding the project .env (the working directory when None)
        user_env_paths: User-level files, overriding the XDG default
        project_env_paths: Project-level files, overriding ``project_dir/.env``

    Returns:
        Names of the variables that were set
    """
    users = list(user_env_paths) if user_env_paths is not None else [user_env_path()]
    projects = (
        list(project_env_paths)
        if project_env_paths is not None
        else [(project_dir or Path.cwd()) / ".env"]
    )

    preset = set(os.environ)
    exported: dict[str, str] = {}
    for path in [*users, *projects]:
        for key, value in _read_env(Path(path)).items():
            if key not in preset:
                exported[key] = value

    os.environ.update(exported)
    if exported:
        logger.debug(f"Loaded {len(exported)} variable(s) from .env files")
    return sorted(exported)


__all__ = ["load_layered_env", "user_env_path"]
