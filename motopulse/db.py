"""Database schema and functions for the review cache."""

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import g

from . import utils
from .errors import CacheReadError, CacheWriteError

logger = logging.getLogger(__name__)

DB_PATH = os.environ.get("MOTOPULSE_DB", "motopulse.sqlite3")

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS reviews (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  content TEXT NOT NULL,
  author TEXT NOT NULL,
  channel TEXT NOT NULL,
  url TEXT NOT NULL,
  upvotes INTEGER NOT NULL DEFAULT 0,
  comments INTEGER NOT NULL DEFAULT 0,
  sentiment TEXT NOT NULL CHECK (sentiment IN ('positive', 'neutral', 'negative')),
  confidence REAL CHECK (confidence >= 0 AND confidence <= 1),
  category TEXT NOT NULL,
  has_question INTEGER NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  fetched_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_reviews_created_at ON reviews(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_reviews_sentiment ON reviews(sentiment);
CREATE INDEX IF NOT EXISTS idx_reviews_channel ON reviews(channel);
CREATE INDEX IF NOT EXISTS idx_reviews_fetched_at ON reviews(fetched_at DESC);

CREATE TABLE IF NOT EXISTS maintenance_state (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
"""

REVIEW_COLUMNS = (
    "id", "title", "content", "author", "channel", "url", "upvotes", "comments",
    "sentiment", "confidence", "category", "has_question", "created_at", "fetched_at",
)

EMPTY_CLEANUP_STATS = {"reviews_deleted": 0}


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH, check_same_thread=False, timeout=30.0)
    conn.row_factory = sqlite3.Row
    # Ensure WAL mode is enabled for better concurrency
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def get_db() -> sqlite3.Connection:
    if "db" not in g:
        g.db = connect()
    return g.db


def init_db() -> None:
    conn = sqlite3.connect(DB_PATH, check_same_thread=False, timeout=30.0)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()


def recent_reviews(conn: sqlite3.Connection, limit: int) -> List[sqlite3.Row]:
    """Return up to ``limit`` cached rows, newest first."""
    try:
        return conn.execute(
            "SELECT * FROM reviews ORDER BY created_at DESC LIMIT ?", (limit,)
        ).fetchall()
    except sqlite3.Error as e:
        raise CacheReadError(f"{type(e).__name__}: {e}") from e


def all_reviews(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    try:
        return conn.execute("SELECT * FROM reviews ORDER BY created_at DESC").fetchall()
    except sqlite3.Error as e:
        raise CacheReadError(f"{type(e).__name__}: {e}") from e


def upsert_reviews(conn: sqlite3.Connection, rows: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
    """
    Insert or replace rows keyed by review id.
    Failed rows are logged and skipped; rows already written are kept.
    Returns: (written, failed)
    """
    placeholders = ",".join("?" * len(REVIEW_COLUMNS))
    sql = f"INSERT OR REPLACE INTO reviews({','.join(REVIEW_COLUMNS)}) VALUES({placeholders})"
    written = 0
    failed = 0
    for row in rows:
        try:
            conn.execute(sql, tuple(row.get(col) for col in REVIEW_COLUMNS))
            written += 1
        except sqlite3.Error as e:
            failed += 1
            logger.warning("Cache write failed for review %s: %s", row.get("id"), e)
    try:
        conn.commit()
    except sqlite3.Error as e:
        raise CacheWriteError(f"{type(e).__name__}: {e}") from e
    return written, failed


def count_reviews(conn: sqlite3.Connection) -> int:
    return int(conn.execute("SELECT COUNT(*) FROM reviews").fetchone()[0])


def get_retention_days() -> int:
    """Get retention period in days from environment variable, default 90."""
    return int(os.environ.get("MOTOPULSE_RETENTION_DAYS", "90"))


def get_maintenance_state(conn: sqlite3.Connection, key: str) -> Optional[str]:
    """Get maintenance state value by key."""
    row = conn.execute(
        "SELECT value FROM maintenance_state WHERE key = ?",
        (key,)
    ).fetchone()
    return row["value"] if row else None


def set_maintenance_state(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Set maintenance state value by key."""
    conn.execute(
        "INSERT OR REPLACE INTO maintenance_state(key, value, updated_at) VALUES(?, ?, ?)",
        (key, value, utils.utcnow().isoformat())
    )


def run_cleanup(conn: sqlite3.Connection) -> Dict[str, int]:
    """Delete cached reviews older than the retention period. Returns stats about what was deleted."""
    cutoff = utils.utcnow() - timedelta(days=get_retention_days())
    deleted = conn.execute(
        "DELETE FROM reviews WHERE created_at < ?", (cutoff.isoformat(),)
    ).rowcount
    set_maintenance_state(conn, "last_cleanup", utils.utcnow().isoformat())
    conn.commit()
    return {"reviews_deleted": deleted}


def maybe_run_daily_cleanup(conn: sqlite3.Connection) -> Dict[str, int]:
    """Run cleanup if last cleanup was more than 24 hours ago. Returns cleanup stats."""
    last_cleanup = utils.parse_timestamp(get_maintenance_state(conn, "last_cleanup") or "")
    if last_cleanup and utils.utcnow() - last_cleanup < timedelta(hours=24):
        return dict(EMPTY_CLEANUP_STATS)
    return run_cleanup(conn)


def get_db_file_size() -> int:
    """Get database file size in bytes."""
    try:
        return os.path.getsize(DB_PATH)
    except OSError:
        return 0
