"""Symptom log repository — CRUD operations for the encrypted data bank.

The repository mediates between :class:`LogEntry` domain objects and the
SQLite database. Every query is scoped to a single ``user_id``; callers
never see another user's rows. Notes are encrypted with FieldEncryptor.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import date, datetime, timezone
from typing import Any

from endotrack.core.storage.database import SymptomDatabase
from endotrack.core.storage.encryption import FieldEncryptor
from endotrack.domains.symptoms.domain_logic.entry_models import (
    LogEntry,
    normalize_scores,
    parse_cycle_phase,
)
from endotrack.domains.symptoms.domain_logic.metrics import DEFAULT_CATALOG

logger = logging.getLogger(__name__)

# Score columns are fixed by the schema
_METRIC_KEYS = DEFAULT_CATALOG.keys()


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class SymptomLogRepository:
    """CRUD repository for one user's daily symptom logs.

    Usage::

        db = SymptomDatabase(":memory:")
        db.initialize()
        encryptor = FieldEncryptor(key="...")
        repo = SymptomLogRepository(db, encryptor, user_id="local")

        saved = repo.create_entry(entry)
        recent = repo.list_entries(since=date(2026, 1, 1))
    """

    def __init__(
        self,
        database: SymptomDatabase,
        encryptor: FieldEncryptor,
        user_id: str = "local",
    ) -> None:
        self._db = database
        self._enc = encryptor
        self._user_id = user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    def create_entry(self, entry: LogEntry) -> LogEntry:
        """Insert a new entry and return it with its assigned ID.

        Raises:
            RepositoryError: If an entry already exists for ``entry.log_date``.
        """
        conn = self._db.connection
        entry_id = entry.id or self._new_id()
        scores = normalize_scores(entry.scores, DEFAULT_CATALOG)

        columns = ["id", "user_id", "log_date", *_METRIC_KEYS, "cycle_phase", "notes_enc"]
        values = [
            entry_id,
            self._user_id,
            entry.date_key,
            *(scores[k] for k in _METRIC_KEYS),
            entry.cycle_phase.encode(),
            self._enc.encrypt(entry.notes),
        ]
        placeholders = ", ".join("?" for _ in columns)

        try:
            conn.execute(
                f"INSERT INTO symptom_logs ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise RepositoryError(
                f"An entry already exists for {entry.date_key}"
            ) from exc
        conn.commit()

        logger.info("Saved symptom log %s for %s", entry_id, entry.date_key)
        return LogEntry(
            id=entry_id,
            log_date=entry.log_date,
            scores=scores,
            cycle_phase=entry.cycle_phase,
            notes=entry.notes or None,
        )

    def update_entry(self, entry: LogEntry) -> LogEntry:
        """Overwrite an existing entry (matched by ID).

        Raises:
            RepositoryError: If the entry does not exist, or the new date
                collides with another entry.
        """
        if not entry.id:
            raise RepositoryError("Cannot update an entry without an ID")

        conn = self._db.connection
        scores = normalize_scores(entry.scores, DEFAULT_CATALOG)
        assignments = ", ".join(
            f"{col} = ?" for col in ("log_date", *_METRIC_KEYS, "cycle_phase", "notes_enc", "updated_at")
        )
        params: list[Any] = [
            entry.date_key,
            *(scores[k] for k in _METRIC_KEYS),
            entry.cycle_phase.encode(),
            self._enc.encrypt(entry.notes),
            self._now_iso(),
            entry.id,
            self._user_id,
        ]

        try:
            cursor = conn.execute(
                f"UPDATE symptom_logs SET {assignments} WHERE id = ? AND user_id = ?",
                params,
            )
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise RepositoryError(
                f"An entry already exists for {entry.date_key}"
            ) from exc

        if cursor.rowcount == 0:
            raise RepositoryError(f"No symptom log found with ID {entry.id!r}")
        conn.commit()

        logger.info("Updated symptom log %s", entry.id)
        return LogEntry(
            id=entry.id,
            log_date=entry.log_date,
            scores=scores,
            cycle_phase=entry.cycle_phase,
            notes=entry.notes or None,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: str) -> LogEntry | None:
        row = self._db.connection.execute(
            "SELECT * FROM symptom_logs WHERE id = ? AND user_id = ?",
            (entry_id, self._user_id),
        ).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def get_entry_by_date(self, log_date: date) -> LogEntry | None:
        row = self._db.connection.execute(
            "SELECT * FROM symptom_logs WHERE log_date = ? AND user_id = ?",
            (log_date.isoformat(), self._user_id),
        ).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def list_entries(
        self,
        *,
        since: date | None = None,
        until: date | None = None,
        limit: int | None = None,
        newest_first: bool = False,
    ) -> list[LogEntry]:
        """Query entries with optional inclusive date bounds.

        Args:
            since: Inclusive lower bound on ``log_date``.
            until: Inclusive upper bound on ``log_date``.
            limit: Maximum results to return (all when None).
            newest_first: Sort descending instead of chronologically.
        """
        conditions = ["user_id = ?"]
        params: list[Any] = [self._user_id]

        if since:
            conditions.append("log_date >= ?")
            params.append(since.isoformat())
        if until:
            conditions.append("log_date <= ?")
            params.append(until.isoformat())

        order = "DESC" if newest_first else "ASC"
        query = f"SELECT * FROM symptom_logs WHERE {' AND '.join(conditions)} ORDER BY log_date {order}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def count_entries(self) -> int:
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM symptom_logs WHERE user_id = ?", (self._user_id,)
        ).fetchone()
        return row[0]

    def date_range(self) -> tuple[date | None, date | None]:
        """Return ``(first_log_date, last_log_date)``, or ``(None, None)``."""
        row = self._db.connection.execute(
            "SELECT MIN(log_date), MAX(log_date) FROM symptom_logs WHERE user_id = ?",
            (self._user_id,),
        ).fetchone()
        if row[0] is None:
            return None, None
        return date.fromisoformat(row[0]), date.fromisoformat(row[1])

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_entry(self, entry_id: str) -> bool:
        """Delete one entry.

        Returns:
            True if an entry was found and deleted, False otherwise.
        """
        conn = self._db.connection
        cursor = conn.execute(
            "DELETE FROM symptom_logs WHERE id = ? AND user_id = ?",
            (entry_id, self._user_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            return False
        logger.info("Deleted symptom log %s", entry_id)
        return True

    def delete_all_entries(self) -> int:
        """Delete every entry belonging to this user.

        Returns:
            Number of rows deleted.
        """
        conn = self._db.connection
        cursor = conn.execute(
            "DELETE FROM symptom_logs WHERE user_id = ?", (self._user_id,)
        )
        conn.commit()
        logger.warning("Deleted ALL symptom logs for user: %d rows removed", cursor.rowcount)
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _row_to_entry(self, row: Any) -> LogEntry:
        """Convert a database row to a LogEntry with decrypted notes."""
        return LogEntry(
            id=row["id"],
            log_date=date.fromisoformat(row["log_date"]),
            scores=normalize_scores({k: row[k] for k in _METRIC_KEYS}, DEFAULT_CATALOG),
            cycle_phase=parse_cycle_phase(row["cycle_phase"]),
            notes=self._enc.decrypt(row["notes_enc"]),
        )
