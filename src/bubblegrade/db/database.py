"""SQLite database connection and schema management.

Provides connection management and schema initialization for the record store.
Every call to get_db() is one transaction: committed on success, rolled back
on any error.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/db/bubblegrade.db")

# Current database (module-level, one store per process)
_db_path: Path | None = None


class StorageUnavailable(Exception):
    """Raised when the storage medium cannot be read or written."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(
            f"Storage unavailable during {operation}: {cause}. "
            "Nothing was saved, please try again."
        )


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to data/db/bubblegrade.db

    Raises:
        StorageUnavailable: If the file or its directory cannot be created
    """
    global _db_path
    _db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Return the path of the active database file."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Raises:
        StorageUnavailable: On any sqlite3 or filesystem failure. The
            transaction is rolled back before raising.

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM students").fetchall()
    """
    db_path = get_db_path()

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(db_path)
    except (sqlite3.Error, OSError) as e:
        logger.error("database.connect_failed", path=str(db_path), error=str(e))
        raise StorageUnavailable("connect", e) from e

    conn.row_factory = sqlite3.Row

    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.error("database.transaction_failed", path=str(db_path), error=str(e))
        raise StorageUnavailable("transaction", e) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Referential rules (class in use, student cascade) are enforced by the
    repositories, so no FOREIGN KEY clauses are declared here.
    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS classes (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            section TEXT,
            academic_year TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS students (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            student_id TEXT NOT NULL,
            email TEXT,
            class_id TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS answer_keys (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS exam_results (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            answer_key_id TEXT,
            exam_name TEXT,
            exam_date TEXT,
            percentage REAL,
            grade TEXT,
            passed INTEGER NOT NULL DEFAULT 0,
            data TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Single-row records (settings, teacher profile)
        CREATE TABLE IF NOT EXISTS singletons (
            key TEXT PRIMARY KEY,
            data TEXT NOT NULL DEFAULT '{}',
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_students_class_id ON students(class_id);
        CREATE INDEX IF NOT EXISTS idx_results_student_id ON exam_results(student_id);
        CREATE INDEX IF NOT EXISTS idx_results_answer_key_id ON exam_results(answer_key_id);
        """
    )
