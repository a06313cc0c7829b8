from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


TimeRange = Literal["day", "week", "month", "year"]


def _null_as_empty_list(value: Any) -> Any:
    return [] if value is None else value


class SearchParams(BaseModel):
    """
    Query parameters for GET /search.
    """

    query: str = Field(..., description="Search query, sent as `q`")
    categories: Optional[List[str]] = None
    engines: Optional[List[str]] = None
    language: Optional[str] = None
    pageno: Optional[int] = None
    time_range: Optional[TimeRange] = None
    safesearch: Optional[Literal[0, 1, 2]] = None


class SearchResult(BaseModel):
    """
    One entry of the `results` array; unknown fields are preserved.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = ""
    url: str = ""
    content: Optional[str] = None
    engine: Optional[str] = None
    published_date: Optional[str] = Field(default=None, alias="publishedDate")
    thumbnail: Optional[str] = None
    score: Optional[float] = None

    @field_validator("title", "url", mode="before")
    @classmethod
    def _null_as_empty_string(cls, value: Any) -> Any:
        return "" if value is None else value


class SearchResponse(BaseModel):
    """
    GET /search document. Only `results` is used; SearXNG sends null for
    the other collections on some instances.
    """

    model_config = ConfigDict(extra="allow")

    query: Optional[str] = None
    number_of_results: Optional[float] = None
    results: List[SearchResult] = Field(default_factory=list)
    suggestions: List[Any] = Field(default_factory=list)
    corrections: List[Any] = Field(default_factory=list)
    infoboxes: List[Any] = Field(default_factory=list)

    @field_validator("results", "suggestions", "corrections", "infoboxes", mode="before")
    @classmethod
    def _null_collections(cls, value: Any) -> Any:
        return _null_as_empty_list(value)


class Engine(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    categories: List[str] = Field(default_factory=list)
    enabled: bool = False
    shortcut: Optional[str] = None
    language_support: Optional[bool] = None
    paging: Optional[bool] = None
    safesearch: Optional[bool] = None
    time_range_support: Optional[bool] = None

    @field_validator("categories", mode="before")
    @classmethod
    def _null_categories(cls, value: Any) -> Any:
        return _null_as_empty_list(value)


class ConfigResponse(BaseModel):
    """
    Subset of GET /config used by the tools.
    """

    model_config = ConfigDict(extra="allow")

    categories: List[str] = Field(default_factory=list)
    engines: List[Engine] = Field(default_factory=list)
    default_locale: Optional[str] = None
    locales: Dict[str, str] = Field(default_factory=dict)
    autocomplete: Optional[str] = None
    safe_search: Optional[int] = None

    @field_validator("categories", "engines", mode="before")
    @classmethod
    def _null_collections(cls, value: Any) -> Any:
        return _null_as_empty_list(value)

    @field_validator("locales", mode="before")
    @classmethod
    def _null_as_empty_dict(cls, value: Any) -> Any:
        return {} if value is None else value


__all__ = [
    "ConfigResponse",
    "Engine",
    "SearchParams",
    "SearchResponse",
    "SearchResult",
    "TimeRange",
]
