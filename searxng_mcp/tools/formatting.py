from __future__ import annotations

from typing import Dict, List, Sequence

from searxng_mcp.models import Engine, SearchResult


NO_RESULTS = "No results found."
NO_ENGINES = "No engines available."


def format_search_results(results: Sequence[SearchResult]) -> str:
    """
    Render results as a numbered plain-text list, keeping backend order.
    """
    if not results:
        return NO_RESULTS

    blocks: List[str] = []
    for index, result in enumerate(results, start=1):
        lines = [
            f"{index}. {result.title}",
            f"   URL: {result.url}",
        ]
        if result.content:
            lines.append(f"   {result.content}")
        if result.engine:
            lines.append(f"   Engine: {result.engine}")
        if result.published_date:
            lines.append(f"   Published: {result.published_date}")
        blocks.append("\n".join(lines))

    return f"Found {len(results)} results:\n\n" + "\n\n".join(blocks)


def _category_heading(category: str) -> str:
    return category[:1].upper() + category[1:]


def format_engines(engines: Sequence[Engine]) -> str:
    """
    Render engines grouped by category; an engine is listed under every
    category it belongs to.
    """
    if not engines:
        return NO_ENGINES

    by_category: Dict[str, List[Engine]] = {}
    for engine in engines:
        for category in engine.categories:
            by_category.setdefault(category, []).append(engine)

    lines: List[str] = [f"Available engines ({len(engines)} total):"]
    for category in sorted(by_category):
        lines.append(f"\n## {_category_heading(category)}")
        for engine in by_category[category]:
            status = "✓" if engine.enabled else "✗"
            lines.append(f"  {status} {engine.name}")

    return "\n".join(lines)


__all__ = ["NO_ENGINES", "NO_RESULTS", "format_engines", "format_search_results"]
