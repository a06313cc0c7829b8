from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import httpx

from searxng_mcp.backend import SearXNGClient


SEARXNG_BASE_URL = "http://searxng.local"

SAMPLE_CONFIG: Dict[str, Any] = {
    "categories": ["general", "images", "news"],
    "engines": [
        {"name": "duckduckgo", "categories": ["general"], "enabled": True, "shortcut": "ddg"},
        {"name": "bing news", "categories": ["news", "general"], "enabled": False},
        {"name": "flickr", "categories": ["images"], "enabled": True},
    ],
    "default_locale": "",
    "locales": {"en": "English", "de": "Deutsch"},
    "autocomplete": "",
    "safe_search": 0,
}


class FakeClock:
    """
    Manually advanced monotonic clock.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBinding:
    """
    Stand-in for SessionBinding in registry/reaper tests.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.initialized = False
        self.closed = False
        self.terminated = False
        self.close_calls = 0
        self._closed_listeners: List[Callable[[str], None]] = []

    def on_closed(self, listener: Callable[[str], None]) -> None:
        self._closed_listeners.append(listener)

    async def close(self) -> None:
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self.terminated = True
        for listener in self._closed_listeners:
            listener(self.session_id)


class SearXNGStub:
    """
    httpx.MockTransport handler emulating the two SearXNG endpoints and
    recording every request it sees.
    """

    def __init__(
        self,
        *,
        results: Optional[List[Dict[str, Any]]] = None,
        config: Optional[Dict[str, Any]] = None,
        status_code: int = 200,
    ) -> None:
        self.results = results if results is not None else []
        self.config = config if config is not None else SAMPLE_CONFIG
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"error": "boom"})
        if request.url.path.endswith("/search"):
            body = {
                "query": request.url.params.get("q"),
                "number_of_results": len(self.results),
                "results": self.results,
            }
            return httpx.Response(200, content=json.dumps(body).encode("utf-8"))
        if request.url.path.endswith("/config"):
            return httpx.Response(200, json=self.config)
        return httpx.Response(404, json={"error": "not found"})

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


def make_client(
    stub: Callable[[httpx.Request], httpx.Response],
    *,
    base_url: str = SEARXNG_BASE_URL,
    **kwargs: Any,
) -> SearXNGClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return SearXNGClient(base_url, http_client=http_client, **kwargs)
