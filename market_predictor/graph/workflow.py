"""
LangGraph workflow definition.

Runs the web search for a ticker, then hands the results to the market
analyst for a markdown write-up.  Persistence is left to the caller so a
failed run never leaves a partial record behind.

Dependency Inversion: the LLM and the search function are injected into
``build_graph`` and closed over in every node, so nodes never call
``get_llm()`` or Tavily directly.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypedDict

from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, START, StateGraph

from market_predictor.agents.analyst import MarketAnalyst
from market_predictor.agents.prompts import PromptConfig
from market_predictor.data import tavily_search
from market_predictor.data.models import SearchResult

logger = logging.getLogger(__name__)

SearchFn = Callable[[str, int], list[SearchResult]]


class GraphState(TypedDict, total=False):
    ticker: str
    sources: list[SearchResult]
    analysis: str


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------


def _make_search_node(
    search_fn: SearchFn, prompts: PromptConfig
) -> Callable[[GraphState], GraphState]:
    def _search(state: GraphState) -> GraphState:
        ticker = state["ticker"]
        query = tavily_search.build_search_query(ticker, prompts.search_query_template)
        sources = search_fn(query, prompts.search_result_count)
        logger.info("Search for %s returned %d sources", ticker, len(sources))
        return {"sources": sources}

    return _search


def _make_analyst_node(
    llm: BaseChatModel, prompts: PromptConfig
) -> Callable[[GraphState], GraphState]:
    def _analyse(state: GraphState) -> GraphState:
        analyst = MarketAnalyst(llm, prompts)
        return {"analysis": analyst.run(state["ticker"], state.get("sources", []))}

    return _analyse


# ---------------------------------------------------------------------------
# Graph builder
# ---------------------------------------------------------------------------


def build_graph(
    llm: BaseChatModel | None = None,
    search_fn: SearchFn | None = None,
    prompts: PromptConfig | None = None,
):
    """
    Compile the analysis graph.

    Topology:
        START ── search ── analyst ── END

    Node exceptions are not caught here; they propagate out of
    ``graph.invoke``.
    """
    if llm is None:
        from market_predictor.infra.config import get_llm

        llm = get_llm()
    if prompts is None:
        from market_predictor.infra.config import get_prompt_config

        prompts = get_prompt_config()
    if search_fn is None:
        from market_predictor.infra.config import get_settings

        depth = get_settings().tavily_search_depth

        def search_fn(query: str, count: int) -> list[SearchResult]:
            return tavily_search.search(query, count, search_depth=depth)

    workflow = StateGraph(GraphState)
    workflow.add_node("search", _make_search_node(search_fn, prompts))
    workflow.add_node("analyst", _make_analyst_node(llm, prompts))
    workflow.add_edge(START, "search")
    workflow.add_edge("search", "analyst")
    workflow.add_edge("analyst", END)
    return workflow.compile()


def run_analysis(
    ticker: str,
    llm: BaseChatModel | None = None,
    search_fn: SearchFn | None = None,
    prompts: PromptConfig | None = None,
) -> dict[str, Any]:
    """
    Search and analyse a single ticker.

    Returns
    -------
    dict
        The final state with ``ticker``, ``sources`` (all results, in rank
        order) and ``analysis`` (markdown).
    """
    graph = build_graph(llm=llm, search_fn=search_fn, prompts=prompts)
    initial_state: GraphState = {"ticker": ticker.strip().upper()}
    return graph.invoke(initial_state)
