"""
Analysis service.

Single Responsibility: validates input, runs the search → analyst graph
and persists the outcome.  Both the Flask routes and the CLI call into
this module, so validation and the one-record-per-success rule live in
exactly one place.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from langchain_core.language_models import BaseChatModel
from pydantic import ValidationError

from market_predictor.agents.prompts import PromptConfig
from market_predictor.data.models import AnalysisDetail, AnalysisRequest, AnalysisSummary
from market_predictor.exceptions import (
    AnalysisNotFoundError,
    GenerationError,
    MarketPredictorError,
    PersistenceError,
    RequestValidationError,
)
from market_predictor.graph.workflow import SearchFn, run_analysis
from market_predictor.infra.repository import AbstractAnalysisRepository, AnalysisRecord

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Ticker and userId are required"
MISSING_USER_MESSAGE = "userId is required"
MAX_HISTORY = 50

RepositoryFactory = Callable[[], AbstractAnalysisRepository]


class AnalysisService:
    """Creates and lists market analyses for a user."""

    def __init__(
        self,
        repository_factory: RepositoryFactory | None = None,
        llm: BaseChatModel | None = None,
        search_fn: SearchFn | None = None,
        prompts: PromptConfig | None = None,
        history_limit: int | None = None,
    ) -> None:
        if repository_factory is None:
            from market_predictor.infra.config import get_repository

            repository_factory = get_repository
        if history_limit is None:
            from market_predictor.infra.config import get_settings

            history_limit = get_settings().history_limit
        self._repository_factory = repository_factory
        self._llm = llm
        self._search_fn = search_fn
        self._prompts = prompts
        self._history_limit = max(1, min(history_limit, MAX_HISTORY))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_analysis(self, ticker: Any, user_id: Any) -> AnalysisDetail:
        """Search, analyse and persist one ticker for *user_id*.

        Raises :class:`RequestValidationError` when either field is missing
        or blank.  Any failure after validation leaves the store untouched.
        """
        try:
            request = AnalysisRequest(ticker=ticker, userId=user_id)
        except ValidationError as exc:
            raise RequestValidationError(MISSING_FIELDS_MESSAGE, cause=exc) from exc

        logger.info("Analysing %s for user %s", request.ticker, request.user_id)
        result = run_analysis(
            request.ticker,
            llm=self._llm,
            search_fn=self._search_fn,
            prompts=self._prompts,
        )
        analysis = result.get("analysis")
        if not analysis:
            raise GenerationError(ticker=request.ticker)

        record = AnalysisRecord(
            id=None,
            ticker=request.ticker,
            analysis=analysis,
            sources=result.get("sources", []),
            user_id=request.user_id,
        )
        repo = self._open_repository()
        try:
            record.id = repo.save(record)
        except Exception as exc:
            raise PersistenceError("Failed to save analysis", cause=exc) from exc
        finally:
            repo.close()

        logger.info(
            "Analysis for %s saved (id=%s, %d sources)",
            record.ticker,
            record.id,
            len(record.sources),
        )
        return record.to_detail()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_analyses(self, user_id: Any) -> list[AnalysisSummary]:
        """Return the user's most recent analyses, newest first."""
        if not isinstance(user_id, str) or not user_id.strip():
            raise RequestValidationError(MISSING_USER_MESSAGE, field="userId")

        repo = self._open_repository()
        try:
            records = repo.list_by_user(user_id, limit=self._history_limit)
        except Exception as exc:
            raise PersistenceError("Failed to list analyses", cause=exc) from exc
        finally:
            repo.close()
        return [r.to_summary() for r in records[: self._history_limit]]

    def get_analysis(self, analysis_id: int) -> AnalysisDetail:
        """Return one analysis with its full source list."""
        repo = self._open_repository()
        try:
            record = repo.get_by_id(analysis_id)
        except Exception as exc:
            raise PersistenceError("Failed to load analysis", cause=exc) from exc
        finally:
            repo.close()
        if record is None:
            raise AnalysisNotFoundError(analysis_id)
        return record.to_detail()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open_repository(self) -> AbstractAnalysisRepository:
        try:
            return self._repository_factory()
        except MarketPredictorError:
            raise
        except Exception as exc:
            raise PersistenceError("Could not open the analysis store", cause=exc) from exc
