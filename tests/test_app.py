import httpx
import pytest

from searxng_mcp.routes import create_app
from searxng_mcp.settings import Settings
from tests.utils import SearXNGStub, make_client


MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}


def _settings(**overrides) -> Settings:
    values = {
        "SEARXNG_URL": "http://searxng.local",
        "MCP_JSON_RESPONSE": True,
        "LOG_DIR": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_app_serves_mcp_endpoint_and_nothing_else():
    app = create_app(_settings(), client=make_client(SearXNGStub()))
    transport = httpx.ASGITransport(app=app)

    async with app.router.lifespan_context(app):
        assert app.state.dispatcher.running
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            missing = await client.get("/docs")
            trailing = await client.post("/mcp/", json={}, headers=MCP_HEADERS)
            resp = await client.post(
                "/mcp",
                json={
                    "jsonrpc": "2.0",
                    "id": 1,
                    "method": "initialize",
                    "params": {
                        "protocolVersion": "2025-06-18",
                        "capabilities": {},
                        "clientInfo": {"name": "pytest", "version": "0.0.0"},
                    },
                },
                headers=MCP_HEADERS,
            )

    assert missing.status_code == 404
    assert missing.json() == {"error": "not_found", "message": "Not found", "code": 404}
    assert trailing.status_code == 404
    assert resp.status_code == 200
    assert resp.headers["mcp-session-id"]
    assert not app.state.dispatcher.running


@pytest.mark.asyncio
async def test_app_custom_path():
    app = create_app(_settings(MCP_PATH="rpc"), client=make_client(SearXNGStub()))
    transport = httpx.ASGITransport(app=app)

    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            old = await client.get("/mcp")
            new = await client.get("/rpc")

    assert old.status_code == 404
    assert new.status_code == 400
    assert new.json()["message"] == "Session ID required"


def test_app_in_engine_url_mode_has_no_bound_client():
    app = create_app(_settings(REQUIRE_ENGINE_URL=True))

    assert app.state.toolset.requires_engine_url
    assert app.state.toolset.client is None
