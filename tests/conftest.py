"""
Shared test fixtures and helpers.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage

from market_predictor.agents.prompts import PromptConfig
from market_predictor.data.models import SearchResult
from market_predictor.infra.repository import AnalysisRecord
from market_predictor.infra.repository_sqlite import SQLiteAnalysisRepository
from market_predictor.services.analysis import AnalysisService

SAMPLE_ANALYSIS = """\
## 1. Analysis and Overview
Tesla shares rallied after stronger-than-expected deliveries.

## 2. Short-Term Outlook
Momentum is likely to stay positive over the coming weeks.
"""


# ---------------------------------------------------------------------------
# Mock LLM that returns canned responses
# ---------------------------------------------------------------------------


def make_mock_llm(response_text: str = SAMPLE_ANALYSIS) -> MagicMock:
    """Return a MagicMock that behaves like a BaseChatModel."""
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content=response_text)
    return llm


# ---------------------------------------------------------------------------
# Fake search collaborator
# ---------------------------------------------------------------------------


def make_sources(count: int = 10, ticker: str = "TSLA") -> list[SearchResult]:
    return [
        SearchResult(
            rank=i,
            url=f"https://news{i}.example.com/{ticker.lower()}",
            name=f"{ticker} headline {i}",
            snippet=f"Snippet {i} about {ticker}.",
            host_name=f"news{i}.example.com",
            date="2026-10-17",
            favicon="",
        )
        for i in range(1, count + 1)
    ]


def make_search_fn(count: int = 10) -> MagicMock:
    """Return a search callable that records its calls."""
    fn = MagicMock()
    fn.side_effect = lambda query, n: make_sources(min(count, n))
    return fn


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "test_analyses.db")


@pytest.fixture
def sqlite_repo(db_path) -> SQLiteAnalysisRepository:
    """Create a fresh SQLite repo in a temp directory."""
    repo = SQLiteAnalysisRepository(db_path=db_path)
    repo.initialize()
    yield repo
    repo.close()


@pytest.fixture
def repository_factory(db_path):
    """Factory opening a new connection to the temp database per call."""

    def _factory() -> SQLiteAnalysisRepository:
        repo = SQLiteAnalysisRepository(db_path=db_path)
        repo.initialize()
        return repo

    return _factory


@pytest.fixture
def search_fn() -> MagicMock:
    return make_search_fn(10)


@pytest.fixture
def mock_llm() -> MagicMock:
    return make_mock_llm()


@pytest.fixture
def service(repository_factory, mock_llm, search_fn) -> AnalysisService:
    return AnalysisService(
        repository_factory=repository_factory,
        llm=mock_llm,
        search_fn=search_fn,
        prompts=PromptConfig(),
        history_limit=50,
    )


@pytest.fixture
def make_record():
    """Build an AnalysisRecord created *minutes_ago* minutes in the past."""
    base = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)

    def _make(ticker: str = "TSLA", user_id: str = "u1", minutes_ago: int = 0, sources=None):
        return AnalysisRecord(
            id=None,
            ticker=ticker,
            analysis=f"Analysis of {ticker}",
            sources=make_sources(3, ticker) if sources is None else sources,
            user_id=user_id,
            created_at=base - timedelta(minutes=minutes_ago),
        )

    return _make
