from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Route

from searxng_mcp import __version__
from searxng_mcp.backend import SearXNGClient
from searxng_mcp.errors import error_response
from searxng_mcp.logging_config import logger
from searxng_mcp.mcp_server import build_mcp_server, build_toolset
from searxng_mcp.settings import Settings, settings
from searxng_mcp.transport import StreamableHTTPDispatcher


_ERROR_TYPES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
}


def create_app(
    config: Optional[Settings] = None,
    *,
    client: Optional[SearXNGClient] = None,
) -> FastAPI:
    """
    Build the HTTP application: a single MCP endpoint backed by the session
    dispatcher, whose task group and reaper live as long as the app.
    """
    config = config or settings
    toolset = build_toolset(config, client)
    server = build_mcp_server(toolset)
    dispatcher = StreamableHTTPDispatcher.from_settings(server, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with dispatcher.run():
            logger.info(
                "SearXNG MCP Server running on http://%s:%s%s",
                config.host,
                config.port,
                config.mcp_path,
            )
            if toolset.requires_engine_url:
                logger.info("SearXNG URL: supplied per call (engineUrl)")
            else:
                logger.info("SearXNG URL: %s", config.searxng_url)
            try:
                yield
            finally:
                if toolset.client is not None:
                    await toolset.client.aclose()

    # Only the MCP endpoint is served; docs/openapi routes are disabled so
    # every other path is a 404.
    app = FastAPI(
        title="SearXNG MCP",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.dispatcher = dispatcher
    app.state.toolset = toolset
    app.router.routes.append(Route(config.mcp_path, endpoint=dispatcher))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return error_response(
            exc.status_code,
            error=_ERROR_TYPES.get(exc.status_code, "http_error"),
            message=message,
            headers=getattr(exc, "headers", None),
        )

    return app


__all__ = ["create_app"]
