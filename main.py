import sys

import anyio

from searxng_mcp.logging_config import logger, setup_logging
from searxng_mcp.mcp_server import build_mcp_server, build_toolset
from searxng_mcp.routes import create_app
from searxng_mcp.settings import settings
from searxng_mcp.transport import run_stdio


# Configure logging once for the whole process.
setup_logging()

# FastAPI application instance for uvicorn (streamable HTTP mode).
app = create_app()


async def _serve_stdio() -> None:
    toolset = build_toolset(settings)
    logger.info("SearXNG URL: %s", "per call (engineUrl)" if toolset.requires_engine_url else settings.searxng_url)
    try:
        await run_stdio(build_mcp_server(toolset))
    finally:
        if toolset.client is not None:
            await toolset.client.aclose()


def run() -> None:
    try:
        if settings.transport_mode == "stdio":
            anyio.run(_serve_stdio)
        else:
            import uvicorn

            # Use our own logging configuration configured in searxng_mcp.logging_config.
            uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    except Exception:
        logger.exception("Failed to start server")
        sys.exit(1)


if __name__ == "__main__":
    run()
