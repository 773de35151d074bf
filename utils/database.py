"""Database utilities for the preset browser.

The Komplete Kontrol browser database is owned by another application, so
everything here opens it read-only and never writes.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, List


def open_read_only(db_path: Path, timeout: float = 10) -> sqlite3.Connection:
    """Open *db_path* read-only via a SQLite URI.

    Args:
        db_path: Path to the SQLite database file
        timeout: Seconds to wait on a locked database

    Returns:
        sqlite3.Connection with row_factory set to sqlite3.Row

    Raises:
        sqlite3.OperationalError: If the file does not exist or cannot be opened
    """
    uri = f"file:{Path(db_path).as_posix()}?mode=ro"
    conn = sqlite3.connect(uri, uri=True, check_same_thread=False,
                           timeout=timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists in the database.

    Args:
        conn: SQLite connection
        table: Table name

    Returns:
        True if table exists, False otherwise
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table,)
    )
    return cursor.fetchone() is not None


def query_to_dicts(conn: sqlite3.Connection, query: str,
                   params: tuple = ()) -> List[Dict[str, Any]]:
    """Execute query and return results as list of dicts.

    Args:
        conn: SQLite connection (must have row_factory set)
        query: SQL query string
        params: Query parameters tuple

    Returns:
        List of row dicts
    """
    cursor = conn.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]
