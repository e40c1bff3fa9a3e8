"""MCP server wiring: handlers registered with the SDK and the error channels end to end."""

import logging
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import anyio
import pytest
import requests
from mcp import types
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session

from conftest import make_response
from lta_datamall.app.settings import AppSettings
from lta_datamall.mcp_servers.datamall import server as server_module
from lta_datamall.mcp_servers.datamall.server import SERVER_NAME, build_dispatcher, build_server


pytestmark = pytest.mark.anyio


@pytest.fixture
def server(dispatcher):
    return build_server(dispatcher)


class TestHandlers:

    def test_server_identity(self, server):
        assert server.name == SERVER_NAME == "lta-datamall-server"

    def test_tools_capability_advertised(self, server):
        options = server.create_initialization_options()
        assert options.capabilities.tools is not None

    async def test_list_tools_handler(self, server):
        handler = server.request_handlers[types.ListToolsRequest]
        result = await handler(types.ListToolsRequest(method="tools/list"))
        assert len(result.root.tools) == 7

    async def test_call_tool_handler_success(self, server, session):
        handler = server.request_handlers[types.CallToolRequest]
        req = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="bus_arrival", arguments={"busStopCode": "83139"}),
        )
        result = await handler(req)
        assert isinstance(result.root, types.CallToolResult)
        assert result.root.isError is False

    async def test_call_tool_handler_unknown_raises(self, server):
        handler = server.request_handlers[types.CallToolRequest]
        req = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="not_a_tool", arguments={}),
        )
        with pytest.raises(McpError, match="not_a_tool"):
            await handler(req)


class TestOverTheWire:
    """Runs a real client session against the server over in-memory streams."""

    async def test_list_tools(self, server):
        async with create_connected_server_and_client_session(server) as client:
            result = await client.list_tools()
        assert [t.name for t in result.tools][0] == "bus_arrival"
        assert len(result.tools) == 7

    async def test_unknown_tool_is_jsonrpc_error(self, server):
        async with create_connected_server_and_client_session(server) as client:
            with pytest.raises(McpError) as exc_info:
                await client.call_tool("not_a_tool", {})
        assert exc_info.value.error.code == types.METHOD_NOT_FOUND
        assert "not_a_tool" in exc_info.value.error.message

    async def test_missing_argument_is_jsonrpc_error(self, server, session):
        async with create_connected_server_and_client_session(server) as client:
            with pytest.raises(McpError) as exc_info:
                await client.call_tool("station_crowding", {})
        assert exc_info.value.error.code == types.INVALID_PARAMS
        session.get.assert_not_called()

    async def test_upstream_failure_is_flagged_result(self, server, session):
        session.get.return_value = make_response(401, {"Message": "Invalid Account Key"}, reason="Unauthorized")
        async with create_connected_server_and_client_session(server) as client:
            result = await client.call_tool("train_alerts", {})
        assert result.isError is True
        assert result.content[0].text == "LTA API error: Invalid Account Key"

    async def test_network_failure_is_flagged_result(self, server, session):
        session.get.side_effect = requests.ConnectionError("Connection refused")
        async with create_connected_server_and_client_session(server) as client:
            result = await client.call_tool("carpark_availability", {})
        assert result.isError is True
        assert result.content[0].text == "LTA API error: Connection refused"


class TestBuildDispatcher:

    def test_uses_settings_key_and_packaged_config(self):
        settings = AppSettings(lta_api_key="k-123", provider_config="config/providers.yaml", log_level="INFO")
        dispatcher = build_dispatcher(settings)
        assert dispatcher.client.headers == {"AccountKey": "k-123", "accept": "application/json"}
        assert dispatcher.client.base_url == "https://datamall2.mytransport.sg/ltaodataservice"
        assert dispatcher.client.timeout_s is None


class TestLifecycle:

    async def test_ready_message_after_transport_opens(self, server, monkeypatch, caplog):
        send_in, read_stream = anyio.create_memory_object_stream(1)
        write_stream, recv_out = anyio.create_memory_object_stream(1)

        @asynccontextmanager
        async def fake_stdio():
            yield read_stream, write_stream

        run = AsyncMock()
        monkeypatch.setattr(server_module, "stdio_server", fake_stdio)
        monkeypatch.setattr(server, "run", run)
        caplog.set_level(logging.WARNING, logger=server_module.__name__)

        await server_module.serve(server)

        assert "LTA DataMall MCP server running on stdio" in caplog.messages
        run.assert_awaited_once()
        assert run.await_args.args[:2] == (read_stream, write_stream)

        for stream in (send_in, read_stream, write_stream, recv_out):
            await stream.aclose()

    def test_interrupt_exits_cleanly(self, monkeypatch):
        def interrupted(coro):
            coro.close()
            raise KeyboardInterrupt

        monkeypatch.setattr(server_module.asyncio, "run", interrupted)
        monkeypatch.setattr(server_module, "configure_logging", lambda level: None)
        settings = AppSettings(lta_api_key="k", provider_config="config/providers.yaml", log_level="INFO")

        assert server_module.main(settings) is None
