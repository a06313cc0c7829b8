from __future__ import annotations

from typing import Optional

from mcp import types
from mcp.server.lowlevel import Server

from searxng_mcp import SERVER_NAME, __version__
from searxng_mcp.backend import SearXNGClient
from searxng_mcp.settings import Settings
from searxng_mcp.tools import SearXNGToolset


def build_mcp_server(toolset: SearXNGToolset) -> Server:
    """
    Build the low-level MCP server exposing the toolset.

    One Server instance is shared by every session; per-session state lives
    in the ServerSession the SDK creates for each `Server.run()` call.
    """
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return toolset.list_tools()

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        result = await toolset.call(request.params.name, request.params.arguments)
        return types.ServerResult(result)

    # Registered directly so the handler's CallToolResult, isError included,
    # reaches the client unchanged.
    server.request_handlers[types.CallToolRequest] = call_tool
    return server


def build_toolset(config: Settings, client: Optional[SearXNGClient] = None) -> SearXNGToolset:
    """
    Toolset for the configured mode: bound to SEARXNG_URL, or per-call
    `engineUrl` when REQUIRE_ENGINE_URL is set.
    """
    if config.require_engine_url:
        return SearXNGToolset(timeout=config.searxng_timeout)
    if client is None:
        client = SearXNGClient(
            config.searxng_url,
            timeout=config.searxng_timeout,
            config_cache_ttl=config.config_cache_ttl,
        )
    return SearXNGToolset(client)


__all__ = ["build_mcp_server", "build_toolset"]
