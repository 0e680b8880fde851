"""
SQLite implementation of the analysis repository.

Used as the default backend for local development.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from market_predictor.infra.repository import AbstractAnalysisRepository, AnalysisRecord

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS analyses (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    ticker      TEXT    NOT NULL,
    analysis    TEXT    NOT NULL,
    sources     TEXT    NOT NULL DEFAULT '[]',
    user_id     TEXT    NOT NULL,
    created_at  TEXT    NOT NULL
);
"""

_CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_analyses_user_created
ON analyses (user_id, created_at DESC);
"""


class SQLiteAnalysisRepository(AbstractAnalysisRepository):
    """SQLite-backed repository — great for dev / single-user use."""

    def __init__(self, db_path: str = "analyses.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self._db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def initialize(self) -> None:
        conn = self._get_conn()
        conn.execute(_CREATE_TABLE_SQL)
        conn.execute(_CREATE_INDEX_SQL)
        conn.commit()

    def save(self, record: AnalysisRecord) -> int:
        conn = self._get_conn()
        with conn:
            cursor = conn.execute(
                """
                INSERT INTO analyses (ticker, analysis, sources, user_id, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.ticker,
                    record.analysis,
                    record.sources_json(),
                    record.user_id,
                    record.created_at.isoformat(timespec="microseconds"),
                ),
            )
        record.id = cursor.lastrowid
        return cursor.lastrowid  # type: ignore[return-value]

    def get_by_id(self, record_id: int) -> Optional[AnalysisRecord]:
        conn = self._get_conn()
        row = conn.execute("SELECT * FROM analyses WHERE id = ?", (record_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def list_by_user(self, user_id: str, limit: int = 50) -> list[AnalysisRecord]:
        conn = self._get_conn()
        rows = conn.execute(
            """
            SELECT * FROM analyses
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> AnalysisRecord:
        return AnalysisRecord(
            id=row["id"],
            ticker=row["ticker"],
            analysis=row["analysis"],
            sources=AnalysisRecord.sources_from_json(row["sources"]),
            user_id=row["user_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
