"""
Market analyst agent.

Sends the fixed system instruction plus the ticker and its top search
results to the chat model, and returns the generated markdown.

Dependency Inversion: the agent depends on the abstract ``BaseChatModel``
interface, not on a concrete OpenAI class.
"""

from __future__ import annotations

import json
import logging

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from market_predictor.agents.prompts import PromptConfig
from market_predictor.data.models import SearchResult
from market_predictor.exceptions import GenerationError

logger = logging.getLogger(__name__)


def _content_to_text(content: object) -> str:
    """Flatten an ``AIMessage.content`` (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return ""


class MarketAnalyst:
    """Writes a two-section markdown analysis from web search results."""

    def __init__(self, llm: BaseChatModel, prompts: PromptConfig | None = None) -> None:
        self._llm = llm
        self._prompts = prompts or PromptConfig()

    def build_messages(self, ticker: str, sources: list[SearchResult]) -> list:
        """Return the system + user turns; only the leading sources are embedded."""
        top = sources[: self._prompts.prompt_result_count]
        payload = json.dumps(
            [s.model_dump() for s in top], ensure_ascii=False
        )
        return [
            SystemMessage(content=self._prompts.system_instruction),
            HumanMessage(
                content=self._prompts.user_prompt_template.format(
                    ticker=ticker, sources=payload
                )
            ),
        ]

    def run(self, ticker: str, sources: list[SearchResult]) -> str:
        messages = self.build_messages(ticker, sources)
        response = self._llm.invoke(
            messages,
            temperature=self._prompts.temperature,
            max_tokens=self._prompts.max_tokens,
        )
        text = _content_to_text(getattr(response, "content", None)).strip()
        if not text:
            logger.error("Model returned an empty analysis for %s", ticker)
            raise GenerationError(ticker=ticker)
        return text
