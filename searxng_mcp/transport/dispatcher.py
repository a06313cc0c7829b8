"""
ASGI dispatcher for the MCP streamable HTTP endpoint.

Routing per request:

1. Any path but the configured endpoint -> 404.
2. POST bodies are buffered up to `max_body_size` (413 beyond it) and must
   parse as JSON (400 otherwise); the buffered bytes are then replayed to
   the session transport.
3. With an `mcp-session-id` header the request goes to the registered
   binding (404 if the id is unknown). Without one, a POST starts a new
   session; GET/DELETE get 400 and anything else 405.

A session only becomes reachable by id after its transport reports a
completed handshake. If establishing it fails, or the handshake never
completes, the half-built binding is removed and closed before returning.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import anyio
from anyio.abc import TaskGroup
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER
from starlette.datastructures import Headers
from starlette.requests import ClientDisconnect
from starlette.responses import Response
from starlette.types import Message, Receive, Scope, Send

from searxng_mcp.errors import (
    bad_request,
    internal_error,
    method_not_allowed,
    not_found,
    payload_too_large,
)
from searxng_mcp.logging_config import logger
from searxng_mcp.sessions import SessionBinding, SessionReaper, SessionRegistry
from searxng_mcp.settings import Settings


DEFAULT_MAX_BODY_SIZE = 1024 * 1024


class RequestRejected(Exception):
    """Raised while reading a request that must be answered with `response`."""

    def __init__(self, response: Response) -> None:
        super().__init__(response.status_code)
        self.response = response


class _TrackedSend:
    """
    Records whether (and with which status) a response has been started.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self.status: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.status is not None

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
        await self._send(message)


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """
    Receive callable that yields the already-buffered body once, then
    defers to the real channel (for disconnect notifications).
    """
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class StreamableHTTPDispatcher:
    def __init__(
        self,
        registry: SessionRegistry,
        *,
        path: str = "/mcp",
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        reaper: Optional[SessionReaper] = None,
    ) -> None:
        self.registry = registry
        self.path = path
        self.max_body_size = max_body_size
        self.reaper = reaper
        self._task_group: Optional[TaskGroup] = None

    @classmethod
    def from_settings(cls, server: Server, config: Settings) -> "StreamableHTTPDispatcher":
        registry = SessionRegistry(
            lambda: SessionBinding(server, json_response=config.mcp_json_response)
        )
        reaper = SessionReaper(
            registry,
            session_timeout=config.session_timeout,
            interval=config.session_cleanup_interval,
        )
        return cls(
            registry,
            path=config.mcp_path,
            max_body_size=config.max_request_body_size,
            reaper=reaper,
        )

    @property
    def running(self) -> bool:
        return self._task_group is not None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """
        Host session server loops and the reaper for the lifetime of the
        context. Leaving it cancels every session.
        """
        if self._task_group is not None:
            raise RuntimeError("StreamableHTTPDispatcher.run() is already active")
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            if self.reaper is not None:
                tg.start_soon(self.reaper.run)
            logger.info("MCP dispatcher started on %s", self.path)
            try:
                yield
            finally:
                tg.cancel_scope.cancel()
                self._task_group = None
        logger.info("MCP dispatcher stopped (%d sessions left)", len(self.registry))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            raise RuntimeError(f"Unsupported ASGI scope type: {scope['type']}")

        method = scope["method"]
        tracked = _TrackedSend(send)
        try:
            await self._dispatch(method, scope, receive, tracked)
        finally:
            logger.info("HTTP %s %s -> %s", method, scope["path"], tracked.status)

    async def _dispatch(self, method: str, scope: Scope, receive: Receive, send: _TrackedSend) -> None:
        if scope["path"] != self.path:
            await not_found("Not found")(scope, receive, send)
            return

        if method == "POST":
            try:
                body = await self._read_body(scope, receive)
            except RequestRejected as exc:
                await exc.response(scope, receive, send)
                return
            except ClientDisconnect:
                logger.debug("Client disconnected while sending the request body")
                return
            try:
                json.loads(body)
            except ValueError:
                await bad_request("Invalid JSON")(scope, receive, send)
                return
            receive = _replay_body(body, receive)

        session_id = Headers(scope=scope).get(MCP_SESSION_ID_HEADER)

        if session_id:
            binding = self.registry.lookup(session_id)
            if binding is None:
                await not_found("Session not found", details={"session_id": session_id})(
                    scope, receive, send
                )
                return
            self.registry.touch(session_id)
            await self._deliver(binding, scope, receive, send)
            return

        if method == "POST":
            await self._initiate(scope, receive, send)
            return

        if method in ("GET", "DELETE"):
            await bad_request("Session ID required")(scope, receive, send)
            return

        await method_not_allowed()(scope, receive, send)

    async def _read_body(self, scope: Scope, receive: Receive) -> bytes:
        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_size:
            raise RequestRejected(payload_too_large(self.max_body_size))

        body = bytearray()
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                raise ClientDisconnect()
            body.extend(message.get("body", b""))
            if len(body) > self.max_body_size:
                raise RequestRejected(payload_too_large(self.max_body_size))
            if not message.get("more_body", False):
                return bytes(body)

    async def _deliver(
        self, binding: SessionBinding, scope: Scope, receive: Receive, send: _TrackedSend
    ) -> None:
        try:
            await binding.handle_request(scope, receive, send)
        except Exception as exc:
            # Also reached when the binding was evicted mid-request.
            logger.exception("Delivery to session %s failed", binding.session_id)
            if not send.started:
                await internal_error(
                    "Failed to handle request", details={"reason": str(exc) or type(exc).__name__}
                )(scope, receive, send)
        finally:
            if binding.terminated and not binding.closed:
                await binding.close()

    async def _initiate(self, scope: Scope, receive: Receive, send: _TrackedSend) -> None:
        binding: Optional[SessionBinding] = None
        try:
            if self._task_group is None:
                raise RuntimeError("dispatcher is not running; enter run() first")
            binding = self.registry.create_pending()
            pending = binding
            binding.on_initialized(lambda sid: self._activate(sid, pending))
            binding.on_closed(self.registry.remove)
            await binding.start(self._task_group)
            await binding.handle_request(scope, receive, send)
        except Exception as exc:
            logger.exception("Failed to initialize MCP session")
            if binding is not None:
                self.registry.remove_binding(binding)
                await binding.close()
            if not send.started:
                await internal_error(
                    "Failed to initialize session",
                    details={"reason": str(exc) or type(exc).__name__},
                )(scope, receive, send)
            return

        if not binding.initialized:
            # The transport answered (e.g. 400 for a non-initialize message)
            # but no session came out of it.
            self.registry.remove_binding(binding)
            await binding.close()

    def _activate(self, session_id: str, binding: SessionBinding) -> None:
        self.registry.activate(session_id, binding)
        self.registry.touch(session_id)


__all__ = ["DEFAULT_MAX_BODY_SIZE", "RequestRejected", "StreamableHTTPDispatcher"]
