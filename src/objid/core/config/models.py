"""
Configuration data models for objid-mcp.

These models define the structure of mcp-config.json and
~/.config/objid/config.json files, with validation via Pydantic.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BACKEND_URL = "vjekocom-alext-weu.azurewebsites.net"


class ServerMode(str, Enum):
    """Tool tier exposed by the MCP server."""

    LITE = "lite"
    NORMAL = "normal"
    FULL = "full"


class BackendConfig(BaseModel):
    """
    Connection settings for the allocation backend.

    The primary endpoint serves allocation, sync, consumption, authorization
    and pools. The polling endpoint serves update checks and has its own key.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(
        default=DEFAULT_BACKEND_URL,
        description="Primary backend host, with or without scheme",
    )
    api_key: str = Field(default="", alias="apiKey", description="Primary backend credential")
    poll_url: str = Field(default="", alias="pollUrl", description="Polling backend host")
    poll_key: str = Field(default="", alias="pollKey", description="Polling backend credential")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, ge=0, description="Retries for transient failures")
    max_retry_delay: float = Field(
        default=10.0, gt=0, description="Upper bound for a single retry delay in seconds"
    )

    @field_validator("url", "poll_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


class DefaultsConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_user_name: bool = Field(
        default=True,
        alias="includeUserName",
        description="Send the git user name along with allocation requests",
    )
    verbose_logging: bool = Field(
        default=False,
        alias="verboseLogging",
        description="Log requests and responses at DEBUG level",
    )


class ObjIdConfig(BaseModel):
    """
    Complete objid-mcp configuration.

    Example:
        >>> config = ObjIdConfig(mode="lite")
        >>> config.backend.url
        'vjekocom-alext-weu.azurewebsites.net'
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    backend: BackendConfig = Field(default_factory=BackendConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    mode: ServerMode = Field(default=ServerMode.NORMAL, description="Tool tier to expose")
    state_dir: Optional[Path] = Field(
        default=None,
        alias="stateDir",
        description="Directory holding the persisted state document (default ~/.objid-mcp)",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in {m.value for m in ServerMode}:
                return ServerMode.NORMAL
        return v

    def get_state_path(self) -> Path:
        base = self.state_dir or (Path.home() / ".objid-mcp")
        return Path(base) / "config.json"
