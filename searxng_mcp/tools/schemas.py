from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from searxng_mcp.models import SearchParams, TimeRange


SEARCH_TOOL = "search"
GET_ENGINES_TOOL = "get_engines"

ENGINE_URL_PROPERTY: Dict[str, Any] = {
    "type": "string",
    "format": "uri",
    "description": "The base URL of the SearXNG instance to use",
}

SEARCH_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "The search query"},
        "categories": {
            "type": "array",
            "items": {"type": "string"},
            "description": (
                "Categories to search (e.g., 'general', 'images', 'videos', 'news', "
                "'music', 'files', 'it', 'science', 'social media')"
            ),
        },
        "engines": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Specific engines to use (e.g., 'google', 'bing', 'duckduckgo')",
        },
        "language": {
            "type": "string",
            "description": "Language code (e.g., 'en', 'de', 'fr')",
        },
        "pageno": {
            "type": "number",
            "description": "Page number for pagination (default: 1)",
        },
        "time_range": {
            "type": "string",
            "enum": ["day", "week", "month", "year"],
            "description": "Time range filter",
        },
        "safesearch": {
            "type": "number",
            "minimum": 0,
            "maximum": 2,
            "description": "Safe search level (0=off, 1=moderate, 2=strict)",
        },
    },
    "required": ["query"],
}

GET_ENGINES_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {},
}


def with_engine_url(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of an input schema that also requires `engineUrl`.
    """
    extended = copy.deepcopy(schema)
    extended.setdefault("properties", {})["engineUrl"] = dict(ENGINE_URL_PROPERTY)
    extended["required"] = [*extended.get("required", []), "engineUrl"]
    return extended


class SearchArguments(BaseModel):
    """
    Arguments accepted by the `search` tool.
    """

    model_config = ConfigDict(extra="ignore")

    query: str
    categories: Optional[List[str]] = None
    engines: Optional[List[str]] = None
    language: Optional[str] = None
    pageno: Optional[int] = None
    time_range: Optional[TimeRange] = None
    safesearch: Optional[int] = None

    @field_validator("pageno", mode="before")
    @classmethod
    def _whole_page_number(cls, value: Any) -> Optional[int]:
        # Advertised as a JSON number; fractional pages are truncated.
        if value is None:
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            raise ValueError("pageno must be a number")

    @field_validator("safesearch", mode="before")
    @classmethod
    def _clamp_safesearch(cls, value: Any) -> Optional[int]:
        # SearXNG only knows 0 (off), 1 (moderate) and 2 (strict).
        if value is None:
            return None
        try:
            level = int(float(value))
        except (TypeError, ValueError, OverflowError):
            raise ValueError("safesearch must be a number between 0 and 2")
        return min(max(level, 0), 2)

    def to_params(self) -> SearchParams:
        return SearchParams(
            query=self.query,
            categories=self.categories,
            engines=self.engines,
            language=self.language,
            pageno=self.pageno,
            time_range=self.time_range,
            safesearch=self.safesearch,
        )


__all__ = [
    "ENGINE_URL_PROPERTY",
    "GET_ENGINES_INPUT_SCHEMA",
    "GET_ENGINES_TOOL",
    "SEARCH_INPUT_SCHEMA",
    "SEARCH_TOOL",
    "SearchArguments",
    "with_engine_url",
]
