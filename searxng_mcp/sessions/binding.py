"""
Transport binding for one MCP session.

A SessionBinding owns one SDK StreamableHTTPServerTransport and the task
running `Server.run()` over it. It publishes exactly two lifecycle events:

- initialized: the transport answered the initiating request with a
  success status, i.e. the MCP handshake went through;
- closed: the session ended (client DELETE, eviction, server loop exit).

Listeners are plain callables taking the session id.
"""

from __future__ import annotations

from typing import Callable, List, Optional
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from starlette.types import Message, Receive, Scope, Send

from searxng_mcp.logging_config import logger


SessionListener = Callable[[str], None]

_SESSION_HEADER = MCP_SESSION_ID_HEADER.lower().encode("latin-1")


def new_session_id() -> str:
    # uuid4 draws 122 bits from os.urandom.
    return uuid4().hex


class SessionBinding:
    def __init__(
        self,
        server: Server,
        *,
        json_response: bool = False,
        session_id: Optional[str] = None,
    ) -> None:
        self.server = server
        self.session_id = session_id or new_session_id()
        self.transport = StreamableHTTPServerTransport(
            mcp_session_id=self.session_id,
            is_json_response_enabled=json_response,
        )
        self.initialized = False
        self.closed = False
        self._initialized_listeners: List[SessionListener] = []
        self._closed_listeners: List[SessionListener] = []
        self._cancel_scope: Optional[anyio.CancelScope] = None

    def on_initialized(self, listener: SessionListener) -> None:
        self._initialized_listeners.append(listener)

    def on_closed(self, listener: SessionListener) -> None:
        self._closed_listeners.append(listener)

    @property
    def terminated(self) -> bool:
        return self.transport.is_terminated

    async def start(self, task_group: TaskGroup) -> None:
        """
        Start the MCP server loop in task_group; returns once the transport
        streams are connected.
        """
        await task_group.start(self._run)

    async def _run(self, *, task_status: TaskStatus = anyio.TASK_STATUS_IGNORED) -> None:
        with anyio.CancelScope() as scope:
            self._cancel_scope = scope
            try:
                async with self.transport.connect() as (read_stream, write_stream):
                    task_status.started()
                    await self.server.run(
                        read_stream,
                        write_stream,
                        self.server.create_initialization_options(),
                        stateless=False,
                    )
            except Exception:
                # Must not reach the task group shared by all sessions.
                logger.exception("MCP server loop for session %s crashed", self.session_id)
            finally:
                self._mark_closed()

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        async def send_wrapper(message: Message) -> None:
            if (
                message["type"] == "http.response.start"
                and not self.initialized
                and not self.closed
                and 200 <= message["status"] < 300
                and _carries_session_header(message)
            ):
                self._mark_initialized()
            await send(message)

        await self.transport.handle_request(scope, receive, send_wrapper)

    async def close(self) -> None:
        """
        Terminate the transport and stop the server loop. Idempotent.
        """
        self._mark_closed()
        if not self.transport.is_terminated:
            await self.transport.terminate()
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    def _mark_initialized(self) -> None:
        self.initialized = True
        for listener in list(self._initialized_listeners):
            listener(self.session_id)

    def _mark_closed(self) -> None:
        if self.closed:
            return
        self.closed = True
        for listener in list(self._closed_listeners):
            listener(self.session_id)


def _carries_session_header(message: Message) -> bool:
    return any(name.lower() == _SESSION_HEADER for name, _ in message.get("headers", []))


__all__ = ["SessionBinding", "SessionListener", "new_session_id"]
