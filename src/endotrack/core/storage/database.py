"""SQLite database management for the symptom log data bank.

Handles connection lifecycle, schema creation, and migrations.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from endotrack.domains.symptoms.domain_logic.entry_models import parse_cycle_phase
from endotrack.domains.symptoms.domain_logic.metrics import DEFAULT_CATALOG

logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 2

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_METRIC_COLUMNS = ",\n".join(
    f"    {key:<22} INTEGER NOT NULL DEFAULT 0" for key in DEFAULT_CATALOG.keys()
)

_SCHEMA_V1 = f"""
-- One row per user per calendar day
CREATE TABLE IF NOT EXISTS symptom_logs (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    log_date    TEXT NOT NULL,
{_METRIC_COLUMNS},
    cycle_phase TEXT,
    -- Encrypted free text
    notes_enc   TEXT,
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT,
    UNIQUE (user_id, log_date)
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_logs_user_date ON symptom_logs(user_id, log_date);
"""

# ---------------------------------------------------------------------------
# V2: cycle_phase moves from a single tag to comma-joined tags.
# Existing values are rewritten to the canonical multi-tag encoding.
# ---------------------------------------------------------------------------


def _migrate_cycle_phases(conn: sqlite3.Connection) -> int:
    """Rewrite legacy cycle_phase values; returns the number of rows changed."""
    rows = conn.execute(
        "SELECT id, cycle_phase FROM symptom_logs WHERE cycle_phase IS NOT NULL"
    ).fetchall()
    changed = 0
    for row in rows:
        canonical = parse_cycle_phase(row[1]).encode()
        if canonical != row[1]:
            conn.execute(
                "UPDATE symptom_logs SET cycle_phase = ? WHERE id = ?",
                (canonical, row[0]),
            )
            changed += 1
    return changed


class DatabaseError(Exception):
    """Raised when database operations fail."""


class SymptomDatabase:
    """SQLite database manager for the symptom log data bank.

    Supports both file-based and in-memory (`:memory:`) databases.
    In-memory mode is used for testing.

    Usage::

        db = SymptomDatabase(":memory:")
        db.initialize()
        conn = db.connection
        # ... use connection ...
        db.close()
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        """Initialize database manager.

        Args:
            db_path: Path to SQLite file, or ":memory:" for in-memory DB.
        """
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the active database connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Create the database connection and ensure schema exists.

        For file-based databases, creates parent directories if needed.
        Idempotent: safe to call multiple times.
        """
        if self._conn is not None:
            return  # Already initialized

        if self._db_path != ":memory:":
            db_file = Path(self._db_path).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_file), check_same_thread=False)
        else:
            self._conn = sqlite3.connect(":memory:", check_same_thread=False)

        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        self._ensure_schema()
        logger.info("Symptom database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist and apply migrations."""
        conn = self.connection

        # V1: core tables, CREATE IF NOT EXISTS
        conn.executescript(_SCHEMA_V1)

        cursor = conn.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        current_version = row[0] if row[0] is not None else 0

        if current_version < 2:
            changed = _migrate_cycle_phases(conn)
            logger.info("Applied schema migration V2: %d cycle phases rewritten", changed)

        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
            logger.info(
                "Schema updated from version %d to %d", current_version, SCHEMA_VERSION
            )

    def get_schema_version(self) -> int:
        """Return the current schema version."""
        cursor = self.connection.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Symptom database closed")

    def __enter__(self) -> SymptomDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
