"""
Data models for the Market Predictor.

Pydantic models for the web-search sources, the inbound analysis request
and the shapes returned by the HTTP API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


# ---------------------------------------------------------------------------
# Search sources
# ---------------------------------------------------------------------------

class SearchResult(BaseModel):
    """One ranked web-search snippet about a ticker."""

    rank: int = Field(description="1-based position in the search results.")
    url: str
    name: str = Field(default="", description="Page title shown to the user.")
    snippet: str = Field(default="", description="Short excerpt of the page.")
    host_name: str = ""
    date: str = ""
    favicon: str = ""


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class AnalysisRequest(BaseModel):
    """Body of ``POST /analysis``.

    Both fields are required and must be non-blank strings.  The ticker is
    trimmed and upper-cased; ``userId`` is an opaque key kept exactly as sent.
    """

    model_config = ConfigDict(populate_by_name=True)

    ticker: str
    user_id: str = Field(alias="userId")

    @field_validator("ticker", "user_id", mode="before")
    @classmethod
    def _require_text(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @field_validator("ticker")
    @classmethod
    def _upper_ticker(cls, v: str) -> str:
        return v.strip().upper()


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class AnalysisSummary(BaseModel):
    """History entry returned by ``GET /analysis`` (no sources)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    ticker: str
    analysis: str
    created_at: datetime = Field(serialization_alias="createdAt")

    @field_serializer("created_at")
    def _iso(self, value: datetime) -> str:
        return value.isoformat()


class AnalysisDetail(AnalysisSummary):
    """Full analysis including every retrieved source."""

    sources: list[SearchResult] = Field(default_factory=list)
