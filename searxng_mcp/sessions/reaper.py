from __future__ import annotations

import anyio

from searxng_mcp.logging_config import logger

from .registry import SessionRegistry


DEFAULT_SESSION_TIMEOUT = 30 * 60
DEFAULT_CLEANUP_INTERVAL = 60


class SessionReaper:
    """
    Periodically evicts sessions idle for longer than session_timeout.

    run() loops until cancelled; it is meant to live in the dispatcher's
    task group and stops with it, so it never keeps the process alive.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        session_timeout: float = DEFAULT_SESSION_TIMEOUT,
        interval: float = DEFAULT_CLEANUP_INTERVAL,
    ) -> None:
        self.registry = registry
        self.session_timeout = session_timeout
        self.interval = interval

    async def sweep(self) -> int:
        """
        Evict every expired session once; returns the number evicted.
        """
        evicted = 0
        for session_id in self.registry.expired(self.session_timeout):
            # Closing a binding may suspend; re-check each entry against the
            # registry as it is now, not as it was at snapshot time.
            entry = self.registry.entry(session_id)
            if entry is None:
                continue
            if self.registry.clock() - entry.last_activity <= self.session_timeout:
                continue
            self.registry.remove(session_id)
            logger.info("Session timed out and cleaned up: %s", session_id)
            evicted += 1
            try:
                await entry.binding.close()
            except Exception:
                logger.exception("Failed to close evicted session %s", session_id)
        return evicted

    async def run(self) -> None:
        logger.debug(
            "Session reaper started (timeout=%ss, interval=%ss)",
            self.session_timeout,
            self.interval,
        )
        while True:
            await anyio.sleep(self.interval)
            await self.sweep()


__all__ = ["DEFAULT_CLEANUP_INTERVAL", "DEFAULT_SESSION_TIMEOUT", "SessionReaper"]
