"""Configuration models and loading for objid-mcp."""

from objid.core.config.loader import clear_cache, load_config
from objid.core.config.models import (
    DEFAULT_BACKEND_URL,
    BackendConfig,
    DefaultsConfig,
    ObjIdConfig,
    ServerMode,
)

__all__ = [
    "DEFAULT_BACKEND_URL",
    "BackendConfig",
    "DefaultsConfig",
    "ObjIdConfig",
    "ServerMode",
    "clear_cache",
    "load_config",
]
