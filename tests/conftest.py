"""
Pytest configuration and shared fixtures.

Provides an isolated environment, app.json project factories, a mocked
backend service and wired service graphs used across the test suite.
"""

import json
import logging
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from objid.core.assignment import AssignmentManager
from objid.core.backend import BackendService, ConsumptionInfo, NextIdInfo
from objid.core.collision import CollisionDetector
from objid.core.config import ObjIdConfig, clear_cache
from objid.core.fields import FieldManager
from objid.core.persistence import StateStore
from objid.core.polling import PollingService
from objid.core.workspace import WorkspaceManager, hash_app_id
from objid.server.context import ServerContext

ENV_VARS = (
    "NINJA_BACKEND_URL",
    "NINJA_API_KEY",
    "NINJA_POLL_URL",
    "NINJA_POLL_KEY",
    "NINJA_INCLUDE_USERNAME",
    "NINJA_VERBOSE_LOGGING",
    "MCP_MODE",
    "OBJID_STATE_DIR",
)


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """
    Keep tests away from the real environment and home directory.

    Clears objid environment variables, points XDG_CONFIG_HOME and the
    state directory into tmp_path and resets the config cache.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("OBJID_STATE_DIR", str(tmp_path / "state"))
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Project Fixtures
# ==============================================================================


def write_app(
    directory: Path,
    name: str,
    declared_id: str | None = None,
    ranges: list[dict[str, int]] | None = None,
    auth_key: str | None = None,
    pool_id: str | None = None,
) -> Path:
    """Create an app folder with app.json and, when needed, .objidconfig."""
    directory.mkdir(parents=True, exist_ok=True)
    manifest: dict[str, Any] = {
        "id": declared_id or f"id-{name}",
        "name": name,
        "publisher": "Contoso",
        "version": "1.0.0.0",
        "idRanges": ranges if ranges is not None else [{"from": 50000, "to": 50099}],
    }
    (directory / "app.json").write_text(json.dumps(manifest, indent=2))

    objid_config: dict[str, Any] = {}
    if auth_key:
        objid_config["authKey"] = auth_key
    if pool_id:
        objid_config["appPoolId"] = pool_id
    if objid_config:
        (directory / ".objidconfig").write_text(json.dumps(objid_config))
    return directory


@pytest.fixture
def make_app():
    """Factory writing an app folder; see ``write_app``."""
    return write_app


@pytest.fixture
def app_id():
    """Hash an app.json id the way discovery does."""
    return hash_app_id


@pytest.fixture
def workspace_root(tmp_path):
    """
    Workspace with two authorized apps whose ranges overlap, plus one
    unauthorized app.

    Creates:
    - alpha/ (50000..50099, key-alpha)
    - beta/ (50050..50199, key-beta)
    - gamma/ (60000..60099, no key)
    """
    root = tmp_path / "workspace"
    write_app(root / "alpha", "Alpha", ranges=[{"from": 50000, "to": 50099}], auth_key="key-alpha")
    write_app(root / "beta", "Beta", ranges=[{"from": 50050, "to": 50199}], auth_key="key-beta")
    write_app(root / "gamma", "Gamma", ranges=[{"from": 60000, "to": 60099}])
    return root


@pytest.fixture
def workspace(workspace_root):
    """WorkspaceManager that has scanned ``workspace_root``."""
    manager = WorkspaceManager()
    manager.scan(workspace_root)
    return manager


# ==============================================================================
# Service Fixtures
# ==============================================================================


@pytest.fixture
def backend():
    """
    BackendService mock with benign defaults.

    get_next answers 50000 as available, sync succeeds and consumption is empty.
    """
    mock = AsyncMock(spec=BackendService)
    mock.get_next.return_value = NextIdInfo(id=50000, available=True)
    mock.sync_ids.return_value = True
    mock.get_consumption.return_value = ConsumptionInfo()
    mock.get_auth_info.return_value = None
    return mock


@pytest.fixture
def detector(backend, workspace):
    return CollisionDetector(backend, workspace)


@pytest.fixture
def store(tmp_path):
    """StateStore writing into tmp_path with a short debounce."""
    return StateStore(tmp_path / "state" / "config.json", save_delay=0.01)


@pytest.fixture
def config(tmp_path):
    return ObjIdConfig(
        state_dir=tmp_path / "state",
        defaults={"includeUserName": False},
        backend={"url": "backend.test", "apiKey": "secret-key"},
    )


# ==============================================================================
# Server Fixtures
# ==============================================================================


@pytest.fixture
def server_context(config, backend, workspace, detector, store):
    """ServerContext wired around the mocked backend and the scanned workspace."""
    return ServerContext(
        config=config,
        backend=backend,
        workspace=workspace,
        collision=detector,
        fields=FieldManager(backend),
        polling=PollingService(backend, workspace, detector),
        assignments=AssignmentManager(backend, detector, store),
        store=store,
    )


@pytest.fixture
def package_log_level():
    """The package logger; its level is restored after the test."""
    logger = logging.getLogger("objid")
    level = logger.level
    yield logger
    logger.setLevel(level)
