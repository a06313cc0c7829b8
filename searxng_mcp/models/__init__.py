from .searxng import (
    ConfigResponse,
    Engine,
    SearchParams,
    SearchResponse,
    SearchResult,
    TimeRange,
)

__all__ = [
    "ConfigResponse",
    "Engine",
    "SearchParams",
    "SearchResponse",
    "SearchResult",
    "TimeRange",
]
