from __future__ import annotations

"""DataMall MCP server.

Exposes LTA DataMall endpoints (bus arrivals, station crowding, alerts,
carparks, travel times, incidents) as MCP tools.
Run (stdio transport):
  python -m lta_datamall.mcp_servers.datamall.server
"""

import asyncio
import logging
import sys
from typing import Optional

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from lta_datamall import __version__
from lta_datamall.app.settings import AppSettings
from lta_datamall.sources.datamall import DataMallClient
from lta_datamall.utils.provider_config_loader import load_config

from .tools import ToolDispatcher


logger = logging.getLogger(__name__)

SERVER_NAME = "lta-datamall-server"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the protocol; logs go to stderr only.
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def build_dispatcher(settings: AppSettings) -> ToolDispatcher:
    cfg = load_config(settings.provider_config)
    client = DataMallClient.from_config(cfg, api_key=settings.lta_api_key)
    return ToolDispatcher(client)


def build_server(dispatcher: ToolDispatcher) -> Server:
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return dispatcher.list_tools()

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        try:
            result = await dispatcher.call_tool(req.params.name, req.params.arguments)
        except McpError as e:
            logger.warning("Rejected tool call | tool=%s | code=%s | message=%s", req.params.name, e.error.code, e.error.message)
            raise
        except Exception:
            logger.error("Tool call failed | tool=%s", req.params.name, exc_info=True)
            raise
        return types.ServerResult(result)

    # Registered directly rather than via @server.call_tool(): that decorator converts
    # every exception (McpError included) into an isError result.
    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        # WARNING so the ready line is emitted at any LOG_LEVEL short of ERROR.
        logger.warning("LTA DataMall MCP server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main(settings: Optional[AppSettings] = None) -> None:
    settings = settings or AppSettings.load()
    configure_logging(settings.log_level)

    server = build_server(build_dispatcher(settings))
    try:
        asyncio.run(serve(server))
    except KeyboardInterrupt:
        # In-flight tool calls are abandoned, not drained.
        logger.info("Interrupted, server stopped")


if __name__ == "__main__":
    main()
