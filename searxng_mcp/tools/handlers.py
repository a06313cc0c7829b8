"""
Tool handlers: map tool arguments onto SearXNGClient calls and render the
outcome as an MCP CallToolResult.

Failures are returned as `isError: true` results rather than raised, so a
backend outage reaches the model as a readable tool error instead of a
protocol fault.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from mcp import types
from pydantic import ValidationError

from searxng_mcp.backend import SearXNGClient
from searxng_mcp.logging_config import logger
from searxng_mcp.settings import is_http_url

from .formatting import format_engines, format_search_results
from .schemas import (
    GET_ENGINES_INPUT_SCHEMA,
    GET_ENGINES_TOOL,
    SEARCH_INPUT_SCHEMA,
    SEARCH_TOOL,
    SearchArguments,
    with_engine_url,
)


ClientFactory = Callable[[str], SearXNGClient]


def describe_error(error: BaseException | str) -> str:
    if isinstance(error, str):
        return error
    if isinstance(error, ValidationError):
        parts = []
        for item in error.errors():
            loc = ".".join(str(p) for p in item.get("loc", ())) or "arguments"
            parts.append(f"{loc}: {item.get('msg')}")
        return "invalid arguments (" + "; ".join(parts) + ")"
    return str(error) or error.__class__.__name__


def text_result(text: str) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
    )


def error_result(error: BaseException | str, context: str) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"Error {context}: {describe_error(error)}")],
        isError=True,
    )


async def search_tool(client: SearXNGClient, arguments: Mapping[str, Any]) -> types.CallToolResult:
    try:
        args = SearchArguments.model_validate(dict(arguments))
        results = await client.search(args.to_params())
    except Exception as exc:
        logger.warning("search tool failed: %s", describe_error(exc))
        return error_result(exc, "performing search")
    return text_result(format_search_results(results))


async def get_engines_tool(
    client: SearXNGClient, arguments: Optional[Mapping[str, Any]] = None
) -> types.CallToolResult:
    try:
        engines = await client.get_engines()
    except Exception as exc:
        logger.warning("get_engines tool failed: %s", describe_error(exc))
        return error_result(exc, "fetching engines")
    return text_result(format_engines(engines))


class SearXNGToolset:
    """
    The `search` and `get_engines` tools, either bound to one SearXNG client
    or, when no client is given, taking the instance URL per call via a
    required `engineUrl` argument.

    Per-call clients are built through `client_factory`, used for that one
    call and closed again; they never share the bound client's config cache.
    """

    def __init__(
        self,
        client: Optional[SearXNGClient] = None,
        *,
        client_factory: Optional[ClientFactory] = None,
        timeout: float = 30.0,
    ) -> None:
        self.client = client
        self._client_factory: ClientFactory = client_factory or (
            lambda url: SearXNGClient(url, timeout=timeout)
        )

    @property
    def requires_engine_url(self) -> bool:
        return self.client is None

    def list_tools(self) -> List[types.Tool]:
        search_schema: Dict[str, Any] = SEARCH_INPUT_SCHEMA
        engines_schema: Dict[str, Any] = GET_ENGINES_INPUT_SCHEMA
        if self.requires_engine_url:
            search_schema = with_engine_url(search_schema)
            engines_schema = with_engine_url(engines_schema)
        return [
            types.Tool(
                name=SEARCH_TOOL,
                title="Search",
                description="Search the web using SearXNG metasearch engine",
                inputSchema=search_schema,
            ),
            types.Tool(
                name=GET_ENGINES_TOOL,
                title="Get Engines",
                description="Get all available search engines supported by the SearXNG instance",
                inputSchema=engines_schema,
            ),
        ]

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]]) -> types.CallToolResult:
        arguments = arguments or {}
        if name == SEARCH_TOOL:
            handler, context = search_tool, "performing search"
        elif name == GET_ENGINES_TOOL:
            handler, context = get_engines_tool, "fetching engines"
        else:
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=f"Unknown tool: {name}")],
                isError=True,
            )

        if self.client is not None:
            return await handler(self.client, arguments)

        engine_url = arguments.get("engineUrl")
        if not engine_url:
            return error_result("engineUrl is required", "initializing SearXNG client")
        if not isinstance(engine_url, str) or not is_http_url(engine_url):
            return error_result(
                "engineUrl must be an http or https URL", "initializing SearXNG client"
            )
        try:
            client = self._client_factory(engine_url)
        except Exception as exc:
            return error_result(exc, "initializing SearXNG client")
        logger.debug("Per-call SearXNG client for %s (%s)", engine_url, context)
        async with client:
            return await handler(client, arguments)


__all__ = [
    "SearXNGToolset",
    "describe_error",
    "error_result",
    "get_engines_tool",
    "search_tool",
    "text_result",
]
