"""
Abstract repository interface for persisting market analyses.

Dependency Inversion Principle: all consumers depend on this abstract
interface, never on a concrete database implementation.
"""

from __future__ import annotations

import abc
import json
from datetime import UTC, datetime
from typing import Optional

from market_predictor.data.models import AnalysisDetail, AnalysisSummary, SearchResult


class AnalysisRecord:
    """A persisted analysis with metadata.

    Records are write-once: the repository assigns ``id`` on save and
    nothing updates or deletes them afterwards.
    """

    def __init__(
        self,
        id: int | None,
        ticker: str,
        analysis: str,
        sources: list[SearchResult],
        user_id: str,
        created_at: datetime | None = None,
    ) -> None:
        self.id = id
        self.ticker = ticker.strip().upper()
        self.analysis = analysis
        self.sources = list(sources)
        self.user_id = user_id
        self.created_at = created_at or datetime.now(tz=UTC)

    def sources_json(self) -> str:
        return json.dumps([s.model_dump() for s in self.sources], ensure_ascii=False)

    @staticmethod
    def sources_from_json(raw: str | list | None) -> list[SearchResult]:
        if not raw:
            return []
        items = json.loads(raw) if isinstance(raw, str) else raw
        return [SearchResult.model_validate(item) for item in items]

    def to_summary(self) -> AnalysisSummary:
        return AnalysisSummary(
            id=self.id, ticker=self.ticker, analysis=self.analysis, created_at=self.created_at
        )

    def to_detail(self) -> AnalysisDetail:
        return AnalysisDetail(
            id=self.id,
            ticker=self.ticker,
            analysis=self.analysis,
            created_at=self.created_at,
            sources=self.sources,
        )

    def __repr__(self) -> str:
        return (
            f"AnalysisRecord(id={self.id}, ticker={self.ticker!r}, "
            f"user_id={self.user_id!r}, created_at={self.created_at!r})"
        )


class AbstractAnalysisRepository(abc.ABC):
    """
    Interface that all analysis repositories must implement.

    There is deliberately no update or delete operation.
    """

    @abc.abstractmethod
    def initialize(self) -> None:
        """Create tables / schema if they don't exist."""

    @abc.abstractmethod
    def save(self, record: AnalysisRecord) -> int:
        """Persist a new record atomically. Returns the generated ID."""

    @abc.abstractmethod
    def get_by_id(self, record_id: int) -> Optional[AnalysisRecord]:
        """Retrieve a single analysis by its ID."""

    @abc.abstractmethod
    def list_by_user(self, user_id: str, limit: int = 50) -> list[AnalysisRecord]:
        """Return the user's analyses, newest first, at most *limit*."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release database resources."""
