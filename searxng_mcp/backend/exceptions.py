from __future__ import annotations

from typing import Optional


class SearXNGClientError(Exception):
    """Base class for failures talking to the SearXNG backend."""


class BackendUnavailable(SearXNGClientError):
    """Raised when the HTTP request itself fails (connect, timeout, protocol)."""

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class BackendError(SearXNGClientError):
    """Raised when SearXNG answers with a non-success status."""

    def __init__(self, operation: str, status_code: int, status_text: str):
        self.operation = operation
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(f"SearXNG {operation} failed: {status_code} {status_text}".rstrip())


class InvalidBackendResponse(SearXNGClientError):
    """Raised when a success response does not carry the expected JSON document."""


__all__ = [
    "SearXNGClientError",
    "BackendUnavailable",
    "BackendError",
    "InvalidBackendResponse",
]
