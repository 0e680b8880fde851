"""
Tavily web search integration.

Runs the recent-news search for a ticker and maps Tavily's result dicts
onto ranked :class:`~market_predictor.data.models.SearchResult` sources.

Unlike a best-effort enrichment, the search here is the only input to the
analysis, so a missing API key or a failed request raises
:class:`~market_predictor.exceptions.SearchError` instead of returning an
empty list.
"""

from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import urlparse

from market_predictor.data.models import SearchResult
from market_predictor.exceptions import SearchError

logger = logging.getLogger(__name__)

SEARCH_QUERY_TEMPLATE = "{ticker} stock price news analysis recent performance"


def _get_api_key() -> str:
    """Lazily read the Tavily API key so ``load_dotenv()`` has time to run."""
    return os.getenv("TAVILY_API_KEY", "")


def _get_client():
    """Return a configured ``TavilyClient``."""
    api_key = _get_api_key()
    if not api_key:
        raise SearchError("TAVILY_API_KEY is not set; web search is unavailable")

    from tavily import TavilyClient  # type: ignore[import-untyped]

    return TavilyClient(api_key=api_key)


def build_search_query(ticker: str, template: str = SEARCH_QUERY_TEMPLATE) -> str:
    """Return the news-search query for *ticker*."""
    return template.format(ticker=ticker)


def search(query: str, count: int = 10, *, search_depth: str = "basic") -> list[SearchResult]:
    """Run a Tavily search and return up to *count* ranked sources.

    Order follows Tavily's relevance ordering; ``rank`` starts at 1.
    """
    client = _get_client()
    try:
        response = client.search(
            query=query,
            max_results=count,
            search_depth=search_depth,
            include_favicon=True,
        )
    except Exception as exc:
        logger.warning("Tavily search failed for %r: %s", query, exc)
        raise SearchError("Web search failed", query=query, cause=exc) from exc

    results = response.get("results", []) if isinstance(response, dict) else []
    logger.debug("Tavily returned %d results for %r", len(results), query)
    return to_sources(results[:count])


def to_sources(results: list[dict[str, Any]]) -> list[SearchResult]:
    """Convert raw Tavily result dicts into ranked sources."""
    sources: list[SearchResult] = []
    for position, r in enumerate(results, start=1):
        url = r.get("url") or ""
        sources.append(
            SearchResult(
                rank=position,
                url=url,
                name=r.get("title") or url,
                snippet=r.get("content") or "",
                host_name=urlparse(url).hostname or "",
                date=r.get("published_date") or "",
                favicon=r.get("favicon") or "",
            )
        )
    return sources
