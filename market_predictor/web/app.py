"""
Flask application factory and CLI entry point.

Single Responsibility: this module only handles HTTP routing and
request/response logic.  Analysis runs synchronously inside the request
through :class:`~market_predictor.services.analysis.AnalysisService`.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify, render_template, request
from werkzeug.middleware.proxy_fix import ProxyFix

from market_predictor.exceptions import (
    AnalysisNotFoundError,
    RequestValidationError,
)
from market_predictor.infra.config import get_settings
from market_predictor.services.analysis import MISSING_FIELDS_MESSAGE, AnalysisService

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Failed to analyze market data"
HISTORY_FAILED_MESSAGE = "Failed to fetch analyses"
DETAIL_FAILED_MESSAGE = "Failed to fetch analysis"


def _get_service() -> AnalysisService:
    """Return the service used by the routes (patched in tests)."""
    return AnalysisService()


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def create_app() -> Flask:
    """Application factory — returns a configured Flask instance."""
    settings = get_settings()
    app = Flask(
        __name__,
        template_folder="templates",
        static_folder="static",
    )
    app.config["SECRET_KEY"] = settings.flask_secret_key

    # Trust reverse-proxy headers so request.url_root uses https:// behind TLS.
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.route("/")
    def index():
        """Single-page UI: ticker form, current analysis and history sidebar."""
        return render_template(
            "index.html",
            default_user_id=settings.default_user_id,
        )

    @app.route("/analysis", methods=["POST"])
    def create_analysis():
        """Run a new analysis for ``{ticker, userId}`` and return it in full."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            logger.warning("Rejected analysis request: body is not a JSON object")
            return _error(MISSING_FIELDS_MESSAGE, 400)

        try:
            detail = _get_service().create_analysis(body.get("ticker"), body.get("userId"))
        except RequestValidationError as exc:
            logger.warning("Rejected analysis request: %s", exc.message)
            return _error(exc.message, 400)
        except Exception:
            logger.exception("Market analysis error")
            return _error(ANALYSIS_FAILED_MESSAGE, 500)

        return jsonify(detail.model_dump(mode="json", by_alias=True))

    @app.route("/analysis", methods=["GET"])
    def list_analyses():
        """Return the caller's history, newest first, without sources."""
        try:
            summaries = _get_service().list_analyses(request.args.get("userId"))
        except RequestValidationError as exc:
            logger.warning("Rejected history request: %s", exc.message)
            return _error(exc.message, 400)
        except Exception:
            logger.exception("Get analyses error")
            return _error(HISTORY_FAILED_MESSAGE, 500)

        return jsonify([s.model_dump(mode="json", by_alias=True) for s in summaries])

    @app.route("/analysis/<int:analysis_id>", methods=["GET"])
    def get_analysis(analysis_id: int):
        """Return one stored analysis including its sources."""
        try:
            detail = _get_service().get_analysis(analysis_id)
        except AnalysisNotFoundError:
            return _error("Analysis not found", 404)
        except Exception:
            logger.exception("Get analysis error")
            return _error(DETAIL_FAILED_MESSAGE, 500)

        return jsonify(detail.model_dump(mode="json", by_alias=True))

    return app


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the Flask development server."""
    import argparse

    from market_predictor.infra.config import configure_logging

    parser = argparse.ArgumentParser(description="Market Predictor Web UI")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=5000, help="Port to bind to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    configure_logging()
    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
