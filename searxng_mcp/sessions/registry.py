"""
In-memory session registry for the streamable HTTP transport.

Maps server-issued session ids to their transport binding and tracks the
last time each session routed a message. All methods are synchronous: on a
single event loop every read-modify-write below is atomic without locks.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from searxng_mcp.logging_config import logger

from .binding import SessionBinding


@dataclass
class SessionEntry:
    session_id: str
    binding: SessionBinding
    created_at: float
    last_activity: float


class SessionRegistry:
    def __init__(
        self,
        binding_factory: Callable[[], SessionBinding],
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._binding_factory = binding_factory
        self.clock = clock
        self._sessions: Dict[str, SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create_pending(self) -> SessionBinding:
        """
        Allocate a binding that is not reachable by id until activate().
        """
        return self._binding_factory()

    def activate(self, session_id: str, binding: SessionBinding) -> None:
        """
        Index binding under session_id once its handshake has completed.
        """
        existing = self._sessions.get(session_id)
        if existing is not None:
            if existing.binding is binding:
                existing.last_activity = self.clock()
                return
            raise ValueError(f"Session {session_id!r} is already bound to another transport")
        now = self.clock()
        self._sessions[session_id] = SessionEntry(
            session_id=session_id,
            binding=binding,
            created_at=now,
            last_activity=now,
        )
        logger.info("Session initialized: %s (active sessions: %d)", session_id, len(self._sessions))

    def lookup(self, session_id: str) -> Optional[SessionBinding]:
        entry = self._sessions.get(session_id)
        return entry.binding if entry else None

    def entry(self, session_id: str) -> Optional[SessionEntry]:
        return self._sessions.get(session_id)

    def touch(self, session_id: str) -> None:
        entry = self._sessions.get(session_id)
        if entry is not None:
            entry.last_activity = self.clock()

    def remove(self, session_id: str) -> bool:
        """
        Drop a session; returns True if it was registered.
        """
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        logger.info("Session closed: %s (active sessions: %d)", session_id, len(self._sessions))
        return True

    def remove_binding(self, binding: SessionBinding) -> List[str]:
        """
        Drop every session bound to binding, for rollbacks where the id of
        a half-established session was never learned.
        """
        stale = [sid for sid, entry in self._sessions.items() if entry.binding is binding]
        for sid in stale:
            del self._sessions[sid]
            logger.warning("Cleaned up broken session: %s", sid)
        return stale

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def expired(self, timeout: float, *, now: Optional[float] = None) -> List[str]:
        """
        Ids of sessions idle for longer than timeout seconds.
        """
        now = self.clock() if now is None else now
        return [
            sid
            for sid, entry in self._sessions.items()
            if now - entry.last_activity > timeout
        ]


__all__ = ["SessionEntry", "SessionRegistry"]
