"""
Database connection, initialization and transaction boundary.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from league_engine.config import get_settings

from .schema import all_schema_sql

logger = logging.getLogger(__name__)


def _run_migrations(conn: sqlite3.Connection) -> None:
    """Columns added after the first schema: roster version, match status."""
    cur = conn.execute("PRAGMA table_info(competition_rosters)")
    rcols = [row[1] for row in cur.fetchall()]
    if "version" not in rcols:
        conn.execute("ALTER TABLE competition_rosters ADD COLUMN version INTEGER NOT NULL DEFAULT 1")
    cur = conn.execute("PRAGMA table_info(competition_matches)")
    mcols = [row[1] for row in cur.fetchall()]
    if "status" not in mcols:
        # Matches recorded before scheduling existed were always played
        conn.execute("ALTER TABLE competition_matches ADD COLUMN status TEXT NOT NULL DEFAULT 'played'")


_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using the configured one."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path."""
    if _db_path is not None:
        return _db_path
    return get_settings().db_path


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection in autocommit mode.
    Multi-statement writes must go through transaction(); use as context manager or close().
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    One atomic unit of work. BEGIN IMMEDIATE takes the write lock up front, so two
    operations touching the same roster are serialized instead of interleaving.
    Commits on success, rolls back on any exception and re-raises it.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.rollback()
        raise
    else:
        conn.commit()


def init_db(db_path: str | Path | None = None) -> None:
    """Create or ensure all tables exist."""
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(all_schema_sql())
        _run_migrations(conn)
        conn.commit()
    finally:
        conn.close()
    logger.debug("Database ready at %s", path)
