import httpx
import pytest

from searxng_mcp.backend import (
    BackendError,
    BackendUnavailable,
    InvalidBackendResponse,
    SearXNGClient,
    build_search_query,
)
from searxng_mcp.backend.client import USER_AGENT
from searxng_mcp.models import SearchParams
from tests.utils import FakeClock, SearXNGStub, make_client


def test_build_search_query_minimal():
    assert build_search_query(SearchParams(query="python")) == {
        "q": "python",
        "format": "json",
    }


def test_build_search_query_joins_lists_and_keeps_zero_safesearch():
    params = SearchParams(
        query="rust",
        categories=["general", "it"],
        engines=["duckduckgo", "bing"],
        language="de",
        pageno=2,
        time_range="week",
        safesearch=0,
    )

    query = build_search_query(params)

    assert query == {
        "q": "rust",
        "format": "json",
        "categories": "general,it",
        "engines": "duckduckgo,bing",
        "language": "de",
        "pageno": "2",
        "time_range": "week",
        "safesearch": "0",
    }


def test_build_search_query_skips_empty_optionals():
    query = build_search_query(SearchParams(query="x", categories=[], engines=[], language=""))
    assert set(query) == {"q", "format"}


def test_base_url_trailing_slashes_are_stripped():
    client = SearXNGClient("http://searxng.local///")
    assert client.base_url == "http://searxng.local"


@pytest.mark.asyncio
async def test_search_sends_expected_request_and_parses_results():
    stub = SearXNGStub(
        results=[
            {"title": "A", "url": "http://a", "content": "alpha", "engine": "e1", "score": 1.5},
            {"title": "B", "url": "http://b", "publishedDate": "2024-01-01", "category": "news"},
        ]
    )
    client = make_client(stub)

    results = await client.search(SearchParams(query="hello world", pageno=1))

    assert [r.title for r in results] == ["A", "B"]
    assert results[0].engine == "e1"
    assert results[1].published_date == "2024-01-01"
    # unknown fields survive parsing
    assert results[1].model_extra["category"] == "news"

    request = stub.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/search"
    assert request.url.params["q"] == "hello world"
    assert request.url.params["format"] == "json"
    assert request.url.params["pageno"] == "1"
    assert request.headers["accept"] == "application/json"
    assert request.headers["user-agent"] == USER_AGENT


@pytest.mark.asyncio
async def test_search_keeps_base_path():
    stub = SearXNGStub()
    client = make_client(stub, base_url="http://proxy.local/searxng/")

    await client.search(SearchParams(query="q"))

    assert stub.paths() == ["/searxng/search"]


@pytest.mark.asyncio
async def test_search_missing_results_is_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"query": "q", "results": None})

    client = make_client(handler)

    assert await client.search(SearchParams(query="q")) == []


@pytest.mark.asyncio
async def test_search_http_error_status_raises_backend_error():
    client = make_client(SearXNGStub(status_code=500))

    with pytest.raises(BackendError) as exc_info:
        await client.search(SearchParams(query="q"))

    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "SearXNG search failed: 500 Internal Server Error"


@pytest.mark.asyncio
async def test_search_transport_failure_raises_backend_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(BackendUnavailable) as exc_info:
        await client.search(SearchParams(query="q"))

    assert "connection refused" in str(exc_info.value)
    assert exc_info.value.url == "http://searxng.local/search"


@pytest.mark.asyncio
async def test_search_non_json_body_raises_invalid_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>rate limited</html>")

    client = make_client(handler)

    with pytest.raises(InvalidBackendResponse):
        await client.search(SearchParams(query="q"))


@pytest.mark.asyncio
async def test_search_non_object_json_raises_invalid_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2, 3])

    client = make_client(handler)

    with pytest.raises(InvalidBackendResponse):
        await client.search(SearchParams(query="q"))


@pytest.mark.asyncio
async def test_get_config_is_cached_until_ttl_expires():
    stub = SearXNGStub()
    clock = FakeClock()
    client = make_client(stub, config_cache_ttl=300, clock=clock)

    first = await client.get_config()
    clock.advance(299)
    second = await client.get_config()

    assert second is first
    assert stub.paths() == ["/config"]

    clock.advance(1)
    third = await client.get_config()

    assert third is not first
    assert stub.paths() == ["/config", "/config"]


@pytest.mark.asyncio
async def test_get_engines_and_categories_share_config_fetch():
    stub = SearXNGStub()
    client = make_client(stub)

    engines = await client.get_engines()
    categories = await client.get_categories()

    assert [e.name for e in engines] == ["duckduckgo", "bing news", "flickr"]
    assert engines[1].enabled is False
    assert categories == ["general", "images", "news"]
    assert len(stub.requests) == 1
    assert stub.requests[0].headers["user-agent"] == USER_AGENT


@pytest.mark.asyncio
async def test_config_failure_is_not_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"categories": [], "engines": []})

    client = make_client(handler)

    with pytest.raises(BackendError) as exc_info:
        await client.get_config()
    assert str(exc_info.value) == "SearXNG config fetch failed: 503 Service Unavailable"

    config = await client.get_config()
    assert config.engines == []
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_invalidate_config_cache_forces_refetch():
    stub = SearXNGStub()
    client = make_client(stub)

    await client.get_config()
    client.invalidate_config_cache()
    await client.get_config()

    assert len(stub.requests) == 2


@pytest.mark.asyncio
async def test_aclose_leaves_shared_http_client_open():
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(SearXNGStub()))
    async with SearXNGClient("http://searxng.local", http_client=http_client) as client:
        await client.get_config()

    assert not http_client.is_closed
    await http_client.aclose()


@pytest.mark.asyncio
async def test_search_tolerates_null_optional_collections_and_titles():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "results": [
                    {"title": "A", "url": "http://x"},
                    {"title": None, "url": None, "content": "untitled"},
                ],
                "suggestions": None,
                "corrections": None,
                "infoboxes": None,
            },
        )

    client = make_client(handler)

    results = await client.search(SearchParams(query="q"))

    assert [(r.title, r.url) for r in results] == [("A", "http://x"), ("", "")]
    assert results[1].content == "untitled"


@pytest.mark.asyncio
async def test_config_tolerates_null_collections():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "categories": None,
                "engines": [{"name": "wikipedia", "categories": None}],
                "locales": None,
            },
        )

    client = make_client(handler)

    config = await client.get_config()

    assert config.categories == []
    assert config.locales == {}
    assert config.engines[0].categories == []
    assert config.engines[0].enabled is False
