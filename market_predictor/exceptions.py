"""
Exception hierarchy for the Market Predictor.

Every failure the analysis pipeline can raise derives from
:class:`MarketPredictorError`, so the web layer can map whole families of
errors onto HTTP status codes with a single ``except`` clause.

Hierarchy::

    MarketPredictorError
    ├── RequestValidationError      (400)
    ├── AnalysisNotFoundError       (404)
    ├── GenerationError             (500)
    └── DependencyError             (500)
        ├── SearchError
        └── PersistenceError
"""

from __future__ import annotations

from typing import Any


class MarketPredictorError(Exception):
    """Base exception carrying a message, optional details and a cause."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            msg = f"{msg} [{detail_str}]"
        if self.cause:
            msg = f"{msg} (caused by: {type(self.cause).__name__}: {self.cause})"
        return msg


class RequestValidationError(MarketPredictorError):
    """A required request field is missing or empty.

    ``message`` is safe to show to the end user.
    """

    def __init__(self, message: str, field: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)


class AnalysisNotFoundError(MarketPredictorError):
    """No stored analysis exists for the requested identifier."""

    def __init__(self, analysis_id: int) -> None:
        self.analysis_id = analysis_id
        super().__init__("Analysis not found", details={"id": analysis_id})


class GenerationError(MarketPredictorError):
    """The completion model returned no usable text."""

    def __init__(self, message: str = "Failed to generate analysis", ticker: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if ticker:
            details["ticker"] = ticker
        super().__init__(message, details=details, **kwargs)


class DependencyError(MarketPredictorError):
    """An external collaborator (search engine, database) failed."""


class SearchError(DependencyError):
    """The web search request could not be completed."""

    def __init__(self, message: str, query: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if query:
            details["query"] = query
        super().__init__(message, details=details, **kwargs)


class PersistenceError(DependencyError):
    """Reading or writing analysis records failed."""
