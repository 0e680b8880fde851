"""
Prompt text and tuning for the market analyst.

Single Responsibility: only stores prompt text and generation parameters.
Everything the analyst sends to the model is a named field on
:class:`PromptConfig`, so tuning happens in configuration, not code.
"""

from __future__ import annotations

from pydantic import BaseModel

from market_predictor.data.tavily_search import SEARCH_QUERY_TEMPLATE

SYSTEM_INSTRUCTION = """\
You are an expert financial analyst: objective, balanced and concise.
Your task is to write an analysis of the requested asset based only on the
recent web search results provided to you. Use only recent, verifiable
information taken from those results; do not invent figures.

Format your answer in Markdown with exactly two sections:

## 1. Analysis and Overview
A concise, balanced overview of the asset's recent performance, news and
drivers.

## 2. Short-Term Outlook
A single sentence summarising the likely short-term direction.
"""

USER_PROMPT_TEMPLATE = """\
Analyse the following ticker: {ticker}.
Recent search data:
{sources}
"""


class PromptConfig(BaseModel):
    """Prompt construction and generation settings for one analysis."""

    system_instruction: str = SYSTEM_INSTRUCTION
    user_prompt_template: str = USER_PROMPT_TEMPLATE
    search_query_template: str = SEARCH_QUERY_TEMPLATE
    search_result_count: int = 10
    prompt_result_count: int = 5
    temperature: float = 0.7
    max_tokens: int = 1000
