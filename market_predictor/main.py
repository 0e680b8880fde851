"""
CLI entry point for the Market Predictor.

Usage:
    market-predictor TSLA
    market-predictor TSLA AAPL BTC-USD        # analyse multiple tickers
    market-predictor TSLA --user alice        # store under a specific user
    market-predictor --history --user alice   # list saved analyses
"""

from __future__ import annotations

import argparse
import sys

from market_predictor.data.models import AnalysisDetail
from market_predictor.exceptions import MarketPredictorError
from market_predictor.infra.config import configure_logging, get_settings
from market_predictor.services.analysis import AnalysisService


def _print_analysis(detail: AnalysisDetail) -> None:
    """Pretty-print an analysis and its sources to stdout."""
    border = "=" * 60
    print(f"\n{border}")
    print(f"  MARKET ANALYSIS — {detail.ticker}  (id={detail.id})")
    print(border)
    print(f"\n{detail.analysis}\n")
    if detail.sources:
        print("Sources:")
        for s in detail.sources:
            print(f"  {s.rank}. {s.name} — {s.host_name or s.url}")
    print(f"{border}\n")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="AI market analysis from recent web search results",
    )
    parser.add_argument(
        "tickers", nargs="*",
        help="One or more ticker symbols (e.g. TSLA AAPL BTC-USD)",
    )
    parser.add_argument(
        "-u", "--user", default=None,
        help="Owning user id (default: DEFAULT_USER_ID)",
    )
    parser.add_argument(
        "--history", action="store_true",
        help="List the user's saved analyses instead of running a new one",
    )
    args = parser.parse_args(argv)
    if not args.history and not args.tickers:
        parser.error("at least one ticker is required unless --history is given")
    return args


def _analyse_single(service: AnalysisService, ticker: str, user_id: str) -> bool:
    """Run analysis for one ticker. Returns True on success."""
    print(f"\n🔍 Analysing {ticker.strip().upper()} …")
    try:
        detail = service.create_analysis(ticker, user_id)
    except KeyboardInterrupt:
        print("\n⚠️  Analysis interrupted by user.")
        sys.exit(130)
    except MarketPredictorError as exc:
        print(f"❌ {exc.message}")
        return False
    except Exception as exc:
        print(f"❌ An unexpected error occurred while analysing {ticker}:")
        print(f"   {type(exc).__name__}: {exc}")
        print("\n   Please check your internet connection and API keys, then try again.")
        return False

    _print_analysis(detail)
    return True


def _print_history(service: AnalysisService, user_id: str) -> None:
    summaries = service.list_analyses(user_id)
    if not summaries:
        print(f"No analyses saved for {user_id}.")
        return
    for s in summaries:
        preview = s.analysis.replace("\n", " ")[:70]
        print(f"{s.id:>5}  {s.created_at:%Y-%m-%d %H:%M}  {s.ticker:<10} {preview}")


def main(argv: list[str] | None = None) -> None:
    """Analyse tickers (or list history), save to DB, and print the results."""
    args = _parse_args(argv)
    configure_logging()
    user_id = args.user or get_settings().default_user_id
    service = AnalysisService()

    if args.history:
        try:
            _print_history(service, user_id)
        except MarketPredictorError as exc:
            print(f"❌ {exc.message}")
            sys.exit(1)
        return

    failures: list[str] = []
    for ticker in args.tickers:
        if not _analyse_single(service, ticker, user_id):
            failures.append(ticker)

    if len(args.tickers) > 1:
        print(f"\n{'=' * 60}")
        print(f"  Completed {len(args.tickers) - len(failures)}/{len(args.tickers)} analyses.")
        if failures:
            print(f"  Failed: {', '.join(failures)}")
        print(f"{'=' * 60}\n")

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
