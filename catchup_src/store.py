"""Optional SQLite-backed storage of request/result pairs.

The engine itself has no side effects; a store is handed to it only
when the host application wants an audit trail of what was asked and
what was recommended.
"""

import json
import logging
import os
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime

from .models import CatchUpRequest, CatchUpResult

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS catchup_requests (
    id TEXT PRIMARY KEY,
    birth_date TEXT NOT NULL,
    as_of_date TEXT,
    cdc_version TEXT NOT NULL,
    processed_at TEXT NOT NULL,
    recommendation_count INTEGER NOT NULL DEFAULT 0,
    request_json TEXT NOT NULL,
    result_json TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_catchup_requests_processed_at
    ON catchup_requests (processed_at);
"""


@dataclass
class StoredCatchUp:
    """A persisted request/result pair."""
    id: str
    request: CatchUpRequest
    result: CatchUpResult
    processed_at: datetime
    cdc_version: str

    @classmethod
    def from_row(cls, row: tuple) -> "StoredCatchUp":
        """Create from database row tuple.

        Row order: id, cdc_version, processed_at, request_json, result_json
        """
        return cls(
            id=row[0],
            cdc_version=row[1],
            processed_at=datetime.fromisoformat(row[2]),
            request=CatchUpRequest.from_dict(json.loads(row[3])),
            result=CatchUpResult.from_dict(json.loads(row[4])),
        )


class CatchUpStore:
    """Interface for persisting engine requests and results."""

    def save(self, request: CatchUpRequest, result: CatchUpResult) -> str:
        """Persist a request/result pair and return its record ID."""
        raise NotImplementedError

    def get(self, record_id: str) -> StoredCatchUp | None:
        raise NotImplementedError

    def list_recent(self, limit: int = 20) -> list[StoredCatchUp]:
        raise NotImplementedError


class NullCatchUpStore(CatchUpStore):
    """Store that keeps nothing."""

    def save(self, request: CatchUpRequest, result: CatchUpResult) -> str:
        return ""

    def get(self, record_id: str) -> StoredCatchUp | None:
        return None

    def list_recent(self, limit: int = 20) -> list[StoredCatchUp]:
        return []


class SQLiteCatchUpStore(CatchUpStore):
    """SQLite-backed storage for request/result pairs."""

    def __init__(self, db_path: str | None = None):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database. Defaults to CATCHUP_DB_PATH
                     env var or ~/.catchup/catchup.db
        """
        if db_path:
            self.db_path = os.path.expanduser(db_path)
        else:
            self.db_path = os.path.expanduser(
                os.environ.get("CATCHUP_DB_PATH", "~/.catchup/catchup.db")
            )

        # Ensure directory exists
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _generate_id(self) -> str:
        return str(uuid.uuid4())[:8]

    def save(self, request: CatchUpRequest, result: CatchUpResult) -> str:
        """Save a request/result pair.

        Args:
            request: The request as passed to the engine.
            result: The engine's result for that request.

        Returns:
            The generated record ID.
        """
        record_id = self._generate_id()

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO catchup_requests (
                    id, birth_date, as_of_date, cdc_version, processed_at,
                    recommendation_count, request_json, result_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record_id,
                    request.birth_date.isoformat(),
                    request.current_date.isoformat() if request.current_date else None,
                    result.cdc_version,
                    result.processed_at.isoformat(),
                    len(result.recommendations),
                    json.dumps(request.to_dict()),
                    json.dumps(result.to_dict()),
                )
            )
            conn.commit()

        logger.info(
            f"Saved catch-up record {record_id} "
            f"({len(result.recommendations)} recommendations)"
        )
        return record_id

    def get(self, record_id: str) -> StoredCatchUp | None:
        """Get a stored record by ID."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                SELECT id, cdc_version, processed_at, request_json, result_json
                FROM catchup_requests WHERE id = ?
                """,
                (record_id,)
            )
            row = cursor.fetchone()

            if row:
                return StoredCatchUp.from_row(tuple(row))
            return None

    def list_recent(self, limit: int = 20) -> list[StoredCatchUp]:
        """Most recently processed records first."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                SELECT id, cdc_version, processed_at, request_json, result_json
                FROM catchup_requests
                ORDER BY processed_at DESC
                LIMIT ?
                """,
                (limit,)
            )
            return [StoredCatchUp.from_row(tuple(row)) for row in cursor.fetchall()]
