"""MCP stdio server exposing the Heroku tool registry."""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from heroku_mcp.handlers import build_tool_registry
from heroku_mcp.heroku_client import DEFAULT_TIMEOUT_SECONDS, build_heroku_client
from heroku_mcp.tools import ToolRegistry, result_text

SERVER_NAME = "mcp-heroku"
SERVER_VERSION = "1.0.0"
SERVER_INSTRUCTIONS = "Heroku management via the Heroku Platform API."

logger = logging.getLogger(__name__)


class ToolCallFailed(RuntimeError):
    """Carries an error envelope's text through the MCP server's error path."""


def create_server(registry: ToolRegistry) -> Server:
    """Wire registry listing and dispatch into an MCP server."""
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION, instructions=SERVER_INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return registry.list_tools()

    # Argument validation belongs to the registry so failures keep one format.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        result = await registry.call_tool(name, arguments)
        if result.isError:
            raise ToolCallFailed(result_text(result))
        return [block for block in result.content if isinstance(block, TextContent)]

    return server


async def run_stdio_server(
    *,
    token: str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    trust_env: bool = True,
) -> None:
    """Serve the Heroku tools over stdin/stdout until the client disconnects."""
    async with build_heroku_client(
        token,
        timeout_seconds=timeout_seconds,
        trust_env=trust_env,
    ) as client:
        registry = build_tool_registry(client)
        server = create_server(registry)
        logger.info("[START] %s v%s with %d tools", SERVER_NAME, SERVER_VERSION, len(registry.names))
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
