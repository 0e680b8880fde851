"""
Tests for the analysis service: validation, orchestration and the
one-record-per-success persistence rule.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from market_predictor.agents.prompts import PromptConfig
from market_predictor.exceptions import (
    AnalysisNotFoundError,
    GenerationError,
    PersistenceError,
    RequestValidationError,
    SearchError,
)
from market_predictor.services.analysis import MAX_HISTORY, MISSING_FIELDS_MESSAGE, AnalysisService
from tests.conftest import make_mock_llm, make_search_fn


def _service_with_mock_repo(llm=None, search_fn=None):
    repo = MagicMock()
    service = AnalysisService(
        repository_factory=lambda: repo,
        llm=llm or make_mock_llm(),
        search_fn=search_fn or make_search_fn(),
        prompts=PromptConfig(),
        history_limit=50,
    )
    return service, repo


class TestCreateAnalysis:
    def test_ticker_is_uppercased(self, service, sqlite_repo):
        detail = service.create_analysis("tsla", "u1")
        assert detail.ticker == "TSLA"
        stored = sqlite_repo.get_by_id(detail.id)
        assert stored.ticker == "TSLA"
        assert stored.user_id == "u1"

    def test_response_keeps_all_sources_prompt_gets_five(self, service, mock_llm):
        detail = service.create_analysis("tsla", "u1")
        assert len(detail.sources) == 10

        human = mock_llm.invoke.call_args.args[0][1]
        payload = json.loads(human.content.split("Recent search data:\n", 1)[1])
        assert len(payload) == 5

    def test_sources_persisted_in_full(self, service, sqlite_repo):
        detail = service.create_analysis("tsla", "u1")
        stored = sqlite_repo.get_by_id(detail.id)
        assert [s.rank for s in stored.sources] == list(range(1, 11))

    def test_new_record_is_first_in_history(self, service):
        service.create_analysis("aapl", "u1")
        newest = service.create_analysis("tsla", "u1")
        history = service.list_analyses("u1")
        assert history[0].id == newest.id
        assert history[0].ticker == "TSLA"

    @pytest.mark.parametrize(
        "ticker,user_id",
        [(None, "u1"), ("", "u1"), ("  ", "u1"), ("TSLA", None), ("TSLA", ""), (None, None)],
    )
    def test_missing_fields_rejected_and_nothing_saved(self, ticker, user_id):
        search_fn = make_search_fn()
        service, repo = _service_with_mock_repo(search_fn=search_fn)
        with pytest.raises(RequestValidationError) as excinfo:
            service.create_analysis(ticker, user_id)
        assert excinfo.value.message == MISSING_FIELDS_MESSAGE
        repo.save.assert_not_called()
        search_fn.assert_not_called()

    def test_empty_completion_saves_nothing(self):
        service, repo = _service_with_mock_repo(llm=make_mock_llm(""))
        with pytest.raises(GenerationError):
            service.create_analysis("TSLA", "u1")
        assert repo.save.call_count == 0

    def test_search_failure_saves_nothing(self):
        search_fn = make_search_fn()
        search_fn.side_effect = SearchError("down")
        service, repo = _service_with_mock_repo(search_fn=search_fn)
        with pytest.raises(SearchError):
            service.create_analysis("TSLA", "u1")
        repo.save.assert_not_called()

    def test_persistence_failure_is_wrapped(self):
        service, repo = _service_with_mock_repo()
        repo.save.side_effect = RuntimeError("disk full")
        with pytest.raises(PersistenceError):
            service.create_analysis("TSLA", "u1")
        repo.close.assert_called_once()

    def test_repository_closed_after_success(self):
        service, repo = _service_with_mock_repo()
        repo.save.return_value = 1
        service.create_analysis("TSLA", "u1")
        repo.save.assert_called_once()
        repo.close.assert_called_once()

    def test_unopenable_store_is_persistence_error(self):
        def _broken():
            raise OSError("no such file")

        service = AnalysisService(
            repository_factory=_broken,
            llm=make_mock_llm(),
            search_fn=make_search_fn(),
            prompts=PromptConfig(),
            history_limit=50,
        )
        with pytest.raises(PersistenceError):
            service.create_analysis("TSLA", "u1")


class TestListAnalyses:
    def test_missing_user_id(self, service):
        for bad in (None, "", "   "):
            with pytest.raises(RequestValidationError):
                service.list_analyses(bad)

    def test_capped_at_history_limit(self, sqlite_repo, make_record, repository_factory):
        for i in range(55):
            sqlite_repo.save(make_record(ticker=f"T{i}", minutes_ago=i))
        service = AnalysisService(
            repository_factory=repository_factory,
            llm=make_mock_llm(),
            search_fn=make_search_fn(),
            history_limit=50,
        )
        history = service.list_analyses("u1")
        assert len(history) == 50
        stamps = [h.created_at for h in history]
        assert stamps == sorted(stamps, reverse=True)

    def test_configured_limit_above_fifty_is_clamped(self, sqlite_repo, make_record, repository_factory):
        for i in range(60):
            sqlite_repo.save(make_record(ticker=f"T{i}", minutes_ago=i))
        service = AnalysisService(
            repository_factory=repository_factory,
            llm=make_mock_llm(),
            search_fn=make_search_fn(),
            history_limit=80,
        )
        history = service.list_analyses("u1")
        assert len(history) == MAX_HISTORY == 50
        assert history[0].ticker == "T0"

    def test_user_id_is_matched_exactly(self, service):
        service.create_analysis("TSLA", "u1")
        service.create_analysis("AAPL", " u1 ")
        assert [h.ticker for h in service.list_analyses("u1")] == ["TSLA"]
        assert [h.ticker for h in service.list_analyses(" u1 ")] == ["AAPL"]

    def test_only_own_records(self, service):
        service.create_analysis("TSLA", "alice")
        service.create_analysis("AAPL", "bob")
        assert [h.ticker for h in service.list_analyses("alice")] == ["TSLA"]

    def test_persistence_failure_is_wrapped(self):
        service, repo = _service_with_mock_repo()
        repo.list_by_user.side_effect = RuntimeError("db gone")
        with pytest.raises(PersistenceError):
            service.list_analyses("u1")
        repo.close.assert_called_once()


class TestGetAnalysis:
    def test_returns_full_detail(self, service):
        created = service.create_analysis("tsla", "u1")
        fetched = service.get_analysis(created.id)
        assert fetched.ticker == "TSLA"
        assert len(fetched.sources) == 10

    def test_unknown_id(self, service):
        with pytest.raises(AnalysisNotFoundError):
            service.get_analysis(12345)
