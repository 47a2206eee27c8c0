"""
Tests for tool tiers and FastMCP server assembly.
"""

import pytest

from objid.core.config import ServerMode
from objid.core.polling import PollingConfig
from objid.server.app import SERVER_NAME, create_server
from objid.server.tiers import (
    ALL_TOOLS,
    LITE_TOOLS,
    is_tool_available,
    resolve_mode,
    tools_for_mode,
)
from objid.server.tools import TOOL_CATALOG

QUICK_START_URI = "objid://workflows/quick-start"


class TestTiers:
    @pytest.mark.parametrize("mode,count", [("lite", 4), ("normal", 14), ("full", 26)])
    def test_tool_counts(self, mode, count):
        assert len(tools_for_mode(mode)) == count

    def test_tiers_are_nested(self):
        lite = set(tools_for_mode(ServerMode.LITE))
        normal = set(tools_for_mode(ServerMode.NORMAL))
        assert lite - {"reserve-id"} <= normal
        assert normal <= set(tools_for_mode(ServerMode.FULL))

    def test_lite_claims_specific_ids(self):
        assert LITE_TOOLS == {"scan-workspace", "set-active-app", "get-next-id", "reserve-id"}

    def test_catalog_order(self):
        assert tools_for_mode("full") == list(ALL_TOOLS)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("lite", ServerMode.LITE),
            (" FULL ", ServerMode.FULL),
            ("unknown", ServerMode.NORMAL),
            ("", ServerMode.NORMAL),
            (ServerMode.FULL, ServerMode.FULL),
        ],
    )
    def test_resolve_mode(self, value, expected):
        assert resolve_mode(value) is expected

    def test_is_tool_available(self):
        assert is_tool_available("reserve-id", "lite")
        assert not is_tool_available("reserve-id", "normal")
        assert not is_tool_available("export-config", "normal")
        assert is_tool_available("export-config", "full")

    def test_every_tool_has_a_handler(self):
        assert set(TOOL_CATALOG) == set(ALL_TOOLS)


# ==============================================================================
# Server
# ==============================================================================


class TestCreateServer:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", ["lite", "normal", "full"])
    async def test_registers_tier(self, server_context, mode):
        mcp = create_server(server_context, mode)
        names = [tool.name for tool in await mcp.list_tools()]
        assert sorted(names) == sorted(tools_for_mode(mode))

    @pytest.mark.asyncio
    async def test_mode_from_config(self, server_context):
        server_context.config = server_context.config.model_copy(update={"mode": ServerMode.LITE})
        mcp = create_server(server_context)
        assert len(await mcp.list_tools()) == 4

    @pytest.mark.asyncio
    async def test_tool_schema_uses_parameter_names(self, server_context):
        mcp = create_server(server_context, "lite")
        tools = {tool.name: tool for tool in await mcp.list_tools()}
        schema = tools["reserve-id"].inputSchema
        assert set(schema["required"]) == {"object_type", "object_id"}
        assert "self" not in schema["properties"]

    @pytest.mark.asyncio
    async def test_quick_start_resource(self, server_context):
        mcp = create_server(server_context, "lite")
        uris = [str(resource.uri) for resource in await mcp.list_resources()]
        assert QUICK_START_URI in uris

    def test_server_name(self, server_context):
        assert create_server(server_context, "lite").name == SERVER_NAME


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_restore_starts_enabled_polling(self, server_context, store, package_log_level):
        store.save_polling_config(
            PollingConfig(enabled=True, interval=60_000, check_consumption=False, check_collisions=False)
        )
        server_context.restore()
        assert server_context.polling.is_running

        server_context.shutdown()
        assert not server_context.polling.is_running
        assert store.is_dirty is False
        assert store.path.exists()

    @pytest.mark.asyncio
    async def test_restore_applies_log_level(self, server_context, store, package_log_level):
        store.save_preferences(log_level="error")
        server_context.restore()
        assert package_log_level.level == 40
        assert not server_context.polling.is_running
