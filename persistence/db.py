# persistence/db.py
"""
SQLite database connection and schema management.

Uses a file-based SQLite database for persistence.
On Railway, use a persistent volume to survive restarts.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Union

_logger = logging.getLogger(__name__)

# Database file location (configurable via env var)
DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "course_evaluator.db"
DB_PATH = Path(os.environ.get("COURSE_EVAL_DB_PATH", str(DEFAULT_DB_PATH)))

# Connection pool (one connection per thread)
_local = threading.local()
_init_lock = threading.Lock()
_initialized = False


def _get_connection() -> sqlite3.Connection:
    """Get thread-local database connection for the current DB_PATH."""
    conn = getattr(_local, "connection", None)
    if conn is not None and getattr(_local, "path", None) != DB_PATH:
        # Path was reconfigured since this thread connected
        conn.close()
        conn = None

    if conn is None:
        # Ensure directory exists
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(DB_PATH),
            timeout=30.0,
            check_same_thread=False,
        )
        # Enable foreign keys
        conn.execute("PRAGMA foreign_keys = ON")
        # Return rows as dicts
        conn.row_factory = sqlite3.Row
        _local.connection = conn
        _local.path = DB_PATH

    return conn


@contextmanager
def get_db():
    """
    Get database connection context manager.

    Usage:
        with get_db() as conn:
            cursor = conn.execute("SELECT ...")
    """
    conn = _get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def init_db() -> None:
    """
    Initialize database schema.

    Creates tables if they don't exist.
    Safe to call multiple times (idempotent).
    """
    global _initialized

    with _init_lock:
        if _initialized:
            return

        with get_db() as conn:
            # Accounts and cookie sessions
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    ip_address TEXT,
                    user_agent TEXT,
                    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_user
                ON sessions(user_id)
            """)

            # Uploaded binary objects
            conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    content_type TEXT NOT NULL,
                    byte_size INTEGER NOT NULL,
                    data BLOB NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            # Single-use upload tickets (JWT ids)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS upload_tickets (
                    jti TEXT PRIMARY KEY,
                    user_id TEXT,
                    issued_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    redeemed_at TEXT
                )
            """)

            # Course evaluations
            conn.execute("""
                CREATE TABLE IF NOT EXISTS course_evaluations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    input_type TEXT NOT NULL,
                    text_input TEXT,
                    external_courses_count INTEGER,
                    internal_courses_count INTEGER,
                    is_simple_mode INTEGER NOT NULL DEFAULT 0,
                    result_json TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_course_evaluations_user
                ON course_evaluations(user_id, created_at DESC)
            """)

            # Ordered image attachments (position is the submission order)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS evaluation_images (
                    evaluation_id INTEGER NOT NULL,
                    position INTEGER NOT NULL,
                    blob_id TEXT NOT NULL,
                    PRIMARY KEY (evaluation_id, position),
                    FOREIGN KEY (evaluation_id) REFERENCES course_evaluations(id) ON DELETE CASCADE,
                    FOREIGN KEY (blob_id) REFERENCES blobs(id)
                )
            """)

            _logger.info(f"Database initialized at {DB_PATH}")
            _initialized = True


def close_db() -> None:
    """Close thread-local database connection."""
    if getattr(_local, "connection", None) is not None:
        _local.connection.close()
        _local.connection = None
        _local.path = None


def reset_db() -> None:
    """Reset database (for testing). Drops all tables."""
    global _initialized

    with _init_lock:
        with get_db() as conn:
            conn.execute("DROP TABLE IF EXISTS evaluation_images")
            conn.execute("DROP TABLE IF EXISTS course_evaluations")
            conn.execute("DROP TABLE IF EXISTS upload_tickets")
            conn.execute("DROP TABLE IF EXISTS blobs")
            conn.execute("DROP TABLE IF EXISTS sessions")
            conn.execute("DROP TABLE IF EXISTS users")
        _initialized = False


def configure_db(path: Union[str, Path]) -> Path:
    """
    Point the persistence layer at a different database file.

    Connections opened by other threads reconnect lazily on their next use.
    """
    global DB_PATH, _initialized

    with _init_lock:
        close_db()
        DB_PATH = Path(path)
        _initialized = False

    return DB_PATH


def get_db_path() -> Path:
    """Get the database file path."""
    return DB_PATH
