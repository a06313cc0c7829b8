"""
Async SearXNG API client.

Wraps the two endpoints the MCP tools need:

- GET /search?format=json  -> ordered search results
- GET /config              -> categories / engines / locale information

The /config document changes rarely, so it is kept in a single-slot cache
for `config_cache_ttl` seconds. An expired or empty slot is refilled by one
synchronous fetch; there is no background refresh.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from searxng_mcp.logging_config import logger
from searxng_mcp.models import ConfigResponse, Engine, SearchParams, SearchResponse, SearchResult

from .exceptions import BackendError, BackendUnavailable, InvalidBackendResponse


USER_AGENT = "SearXNG-MCP/1.0"
DEFAULT_CONFIG_CACHE_TTL = 5 * 60
DEFAULT_TIMEOUT = 30.0


def normalize_base_url(base_url: str) -> str:
    return base_url.rstrip("/")


def build_search_query(params: SearchParams) -> Dict[str, str]:
    """
    Translate SearchParams into the /search query string.

    Optional parameters are only included when supplied and non-empty;
    `safesearch` is included whenever it is set, 0 included.
    """
    query: Dict[str, str] = {
        "q": params.query,
        "format": "json",
    }
    if params.categories:
        query["categories"] = ",".join(params.categories)
    if params.engines:
        query["engines"] = ",".join(params.engines)
    if params.language:
        query["language"] = params.language
    if params.pageno:
        query["pageno"] = str(params.pageno)
    if params.time_range:
        query["time_range"] = params.time_range
    if params.safesearch is not None:
        query["safesearch"] = str(params.safesearch)
    return query


@dataclass
class CachedConfig:
    config: ConfigResponse
    fetched_at: float


class SearXNGClient:
    """
    Thin client for one SearXNG instance.

    Args:
        base_url: instance root, trailing slashes are stripped once here
        http_client: optional shared httpx.AsyncClient; when omitted the
            client creates (and owns) its own on first use
        timeout: request timeout for the owned client, in seconds
        config_cache_ttl: seconds a fetched /config response stays valid
        clock: monotonic time source, overridable in tests
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        config_cache_ttl: float = DEFAULT_CONFIG_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout
        self.config_cache_ttl = config_cache_ttl
        self._clock = clock
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._config_cache: Optional[CachedConfig] = None
        self._headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def __aenter__(self) -> "SearXNGClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_http_client = True
        return self._http_client

    async def _get_json(
        self,
        path: str,
        *,
        operation: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        client = self._get_http_client()
        try:
            response = await client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.warning("SearXNG %s request to %s failed: %s", operation, url, reason)
            raise BackendUnavailable(
                f"SearXNG {operation} request failed: {reason}", url=url
            ) from exc

        if not response.is_success:
            logger.warning(
                "SearXNG %s returned HTTP %s for %s",
                operation,
                response.status_code,
                url,
            )
            raise BackendError(operation, response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidBackendResponse(
                f"SearXNG {operation} returned a non-JSON body"
            ) from exc
        if not isinstance(data, dict):
            raise InvalidBackendResponse(
                f"SearXNG {operation} returned {type(data).__name__}, expected an object"
            )
        return data

    async def search(self, params: SearchParams) -> List[SearchResult]:
        """
        Run a search and return the backend's results in backend order.
        """
        data = await self._get_json(
            "/search", operation="search", params=build_search_query(params)
        )
        try:
            parsed = SearchResponse.model_validate(data)
        except ValidationError as exc:
            raise InvalidBackendResponse(
                f"SearXNG search returned an unexpected document: {exc.error_count()} validation error(s)"
            ) from exc
        logger.debug(
            "SearXNG search %r returned %d results", params.query, len(parsed.results)
        )
        return parsed.results

    async def get_config(self) -> ConfigResponse:
        """
        Return the /config document, reusing the cached copy while it is fresh.
        """
        now = self._clock()
        cached = self._config_cache
        if cached is not None and now - cached.fetched_at < self.config_cache_ttl:
            return cached.config

        data = await self._get_json("/config", operation="config fetch")
        try:
            config = ConfigResponse.model_validate(data)
        except ValidationError as exc:
            raise InvalidBackendResponse(
                f"SearXNG config fetch returned an unexpected document: {exc.error_count()} validation error(s)"
            ) from exc

        self._config_cache = CachedConfig(config=config, fetched_at=now)
        logger.debug(
            "SearXNG config refreshed: %d engines, %d categories",
            len(config.engines),
            len(config.categories),
        )
        return config

    async def get_engines(self) -> List[Engine]:
        config = await self.get_config()
        return config.engines

    async def get_categories(self) -> List[str]:
        config = await self.get_config()
        return config.categories

    def invalidate_config_cache(self) -> None:
        self._config_cache = None


__all__ = [
    "CachedConfig",
    "SearXNGClient",
    "USER_AGENT",
    "build_search_query",
    "normalize_base_url",
]
