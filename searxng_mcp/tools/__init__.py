from .formatting import NO_ENGINES, NO_RESULTS, format_engines, format_search_results
from .handlers import (
    SearXNGToolset,
    error_result,
    get_engines_tool,
    search_tool,
    text_result,
)
from .schemas import GET_ENGINES_TOOL, SEARCH_TOOL, SearchArguments

__all__ = [
    "GET_ENGINES_TOOL",
    "NO_ENGINES",
    "NO_RESULTS",
    "SEARCH_TOOL",
    "SearXNGToolset",
    "SearchArguments",
    "error_result",
    "format_engines",
    "format_search_results",
    "get_engines_tool",
    "search_tool",
    "text_result",
]
