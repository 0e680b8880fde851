"""
Configuration and dependency wiring.

Single Responsibility: only manages settings and shared resources.
All user-tunable values live here as environment-variable-backed
class attributes so they can be changed via ``.env`` without touching code.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from market_predictor.agents.prompts import PromptConfig
from market_predictor.infra.repository import AbstractAnalysisRepository

load_dotenv()


class Settings:
    """Application settings read from environment variables.

    Every attribute has a sensible default so the app runs out of the box
    with just ``OPENAI_API_KEY`` and ``TAVILY_API_KEY`` set.
    """

    # -- LLM -------------------------------------------------------------------
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    temperature: float = float(os.getenv("ANALYSIS_TEMPERATURE", "0.7"))
    max_tokens: int = int(os.getenv("ANALYSIS_MAX_TOKENS", "1000"))

    # -- Tavily web search -----------------------------------------------------
    tavily_api_key: str = os.getenv("TAVILY_API_KEY", "")
    tavily_search_depth: str = os.getenv("TAVILY_SEARCH_DEPTH", "basic")
    search_result_count: int = int(os.getenv("SEARCH_RESULT_COUNT", "10"))
    # Only the leading results are embedded in the prompt.
    prompt_result_count: int = int(os.getenv("PROMPT_RESULT_COUNT", "5"))

    # -- Database --------------------------------------------------------------
    db_backend: str = os.getenv("DB_BACKEND", "sqlite")
    sqlite_path: str = os.getenv("SQLITE_PATH", "analyses.db")
    postgres_dsn: str = os.getenv(
        "POSTGRES_DSN",
        "postgresql://localhost:5432/market_predictor",
    )

    # -- Web -------------------------------------------------------------------
    flask_secret_key: str = os.getenv(
        "FLASK_SECRET_KEY", "market-predictor-change-me-in-production"
    )
    default_user_id: str = os.getenv("DEFAULT_USER_ID", "demo-user")
    history_limit: int = int(os.getenv("HISTORY_LIMIT", "50"))

    # -- Logging ---------------------------------------------------------------
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Set up root logging for an entry point."""
    s = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, s.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_prompt_config(settings: Settings | None = None) -> PromptConfig:
    """Build the analyst's prompt settings from the environment."""
    s = settings or get_settings()
    return PromptConfig(
        search_result_count=s.search_result_count,
        prompt_result_count=s.prompt_result_count,
        temperature=s.temperature,
        max_tokens=s.max_tokens,
    )


def get_llm(settings: Settings | None = None) -> BaseChatModel:
    """Return a configured LLM instance.

    Returns the abstract ``BaseChatModel`` so callers never depend on
    a concrete provider.
    """
    s = settings or get_settings()
    return ChatOpenAI(
        model=s.openai_model,
        temperature=s.temperature,
        max_tokens=s.max_tokens,
        api_key=s.openai_api_key,  # type: ignore[arg-type]
    )


def get_repository(settings: Settings | None = None) -> AbstractAnalysisRepository:
    """
    Factory that returns the correct repository implementation
    based on the DB_BACKEND environment variable.
    """
    s = settings or get_settings()
    if s.db_backend.lower() == "postgres":
        from market_predictor.infra.repository_postgres import PostgresAnalysisRepository

        repo = PostgresAnalysisRepository(dsn=s.postgres_dsn)
    else:
        from market_predictor.infra.repository_sqlite import SQLiteAnalysisRepository

        repo = SQLiteAnalysisRepository(db_path=s.sqlite_path)
    repo.initialize()
    return repo
