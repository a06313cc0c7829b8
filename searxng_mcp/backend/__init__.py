from .client import SearXNGClient, build_search_query
from .exceptions import (
    BackendError,
    BackendUnavailable,
    InvalidBackendResponse,
    SearXNGClientError,
)

__all__ = [
    "BackendError",
    "BackendUnavailable",
    "InvalidBackendResponse",
    "SearXNGClient",
    "SearXNGClientError",
    "build_search_query",
]
