"""
Reading project manifests.

Each project declares itself in ``app.json`` (identity, ranges, publisher).
An optional ``.objidconfig`` next to it holds the authorization key, the
pool id and range overrides. ``.objidconfig`` is JSON with comments.
"""

from __future__ import annotations

import hashlib
import json
import logging
import tempfile
from pathlib import Path
from typing import Any

from objid.core.ranges import Range, parse_range
from objid.core.workspace.models import Project

logger = logging.getLogger(__name__)

MANIFEST_FILE = "app.json"
OBJID_CONFIG_FILE = ".objidconfig"


def hash_app_id(declared_id: str) -> str:
    """SHA-256 hex digest of the manifest's declared id."""
    return hashlib.sha256(declared_id.encode("utf-8")).hexdigest()


def strip_json_comments(text: str) -> str:
    """
    Remove ``//`` and ``/* */`` comments from JSON text.

    String literals are left untouched, so URLs inside values survive.
    """
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1

    return "".join(out)


def _parse_ranges_lenient(values: Any) -> list[Range]:
    ranges: list[Range] = []
    if not isinstance(values, list):
        return ranges
    for value in values:
        try:
            ranges.append(parse_range(value))
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring invalid range {value!r}: {e}")
    return ranges


def read_objid_config(project_dir: Path) -> dict[str, Any] | None:
    """
    Load ``.objidconfig`` from a project directory.

    Returns:
        Parsed settings, or None if the file is missing or unreadable
    """
    path = project_dir / OBJID_CONFIG_FILE
    if not path.is_file():
        return None
    try:
        data = json.loads(strip_json_comments(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, OSError) as e:
        logger.error(f"Error parsing {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def objid_config_ranges(config: dict[str, Any]) -> list[Range]:
    """
    Ranges declared in ``.objidconfig``.

    ``ranges`` is a flat list; the legacy ``idRanges`` form maps object
    kinds to lists and is flattened.
    """
    if "ranges" in config:
        return _parse_ranges_lenient(config["ranges"])
    legacy = config.get("idRanges")
    if isinstance(legacy, dict):
        flattened: list[Range] = []
        for kind_ranges in legacy.values():
            flattened.extend(_parse_ranges_lenient(kind_ranges))
        return flattened
    if isinstance(legacy, list):
        return _parse_ranges_lenient(legacy)
    return []


def manifest_ranges(manifest: dict[str, Any]) -> list[Range]:
    """Ranges declared in ``app.json`` via ``idRanges`` and/or ``idRange``."""
    ranges = _parse_ranges_lenient(manifest.get("idRanges"))
    if isinstance(manifest.get("idRange"), dict):
        ranges.extend(_parse_ranges_lenient([manifest["idRange"]]))
    return ranges


def load_project(project_dir: Path) -> Project | None:
    """
    Build a Project from the manifests in a directory.

    Args:
        project_dir: Directory holding app.json

    Returns:
        Project, or None if app.json is missing, unreadable or has no id
    """
    manifest_path = project_dir / MANIFEST_FILE
    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.error(f"Error loading app info from {manifest_path}: {e}")
        return None

    declared_id = manifest.get("id") if isinstance(manifest, dict) else None
    if not declared_id:
        logger.error(f"{manifest_path} has no id")
        return None

    objid_config = read_objid_config(project_dir)
    ranges: list[Range] = []
    auth_key = None
    pool_id = None
    if objid_config is not None:
        auth_key = objid_config.get("authKey") or None
        pool_id = objid_config.get("appPoolId") or None
        ranges = objid_config_ranges(objid_config)

    return Project(
        path=project_dir,
        app_id=hash_app_id(str(declared_id)),
        name=manifest.get("name") or "Unknown",
        version=manifest.get("version") or "1.0.0.0",
        publisher=manifest.get("publisher") or "Unknown",
        has_objid_config=objid_config is not None,
        auth_key=auth_key,
        ranges=ranges or manifest_ranges(manifest),
        pool_id=pool_id,
    )


def write_auth_key(project_dir: Path, auth_key: str) -> Path:
    """
    Store an authorization key in ``.objidconfig``.

    Existing settings are preserved; comments are not. The write is atomic.

    Returns:
        Path to the written file
    """
    config = read_objid_config(project_dir) or {}
    config["authKey"] = auth_key

    path = project_dir / OBJID_CONFIG_FILE
    with tempfile.NamedTemporaryFile(
        mode="w", encoding="utf-8", dir=project_dir, delete=False, suffix=".tmp"
    ) as tmp:
        json.dump(config, tmp, indent=2)
        tmp.flush()
        tmp_path = Path(tmp.name)
    tmp_path.replace(path)
    return path


__all__ = [
    "MANIFEST_FILE",
    "OBJID_CONFIG_FILE",
    "hash_app_id",
    "strip_json_comments",
    "read_objid_config",
    "objid_config_ranges",
    "manifest_ranges",
    "load_project",
    "write_auth_key",
]
