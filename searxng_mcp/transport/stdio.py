from __future__ import annotations

from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from searxng_mcp.logging_config import logger


async def run_stdio(server: Server) -> None:
    """
    Serve one MCP session over stdin/stdout until the client hangs up.

    Logging goes to stderr, stdout carries protocol frames only.
    """
    async with stdio_server() as (read_stream, write_stream):
        logger.info("SearXNG MCP server running on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
    logger.info("stdio client disconnected")


__all__ = ["run_stdio"]
