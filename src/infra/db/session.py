from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection]:
    """Commit on success, roll back and re-raise on any error."""
    try:
        yield conn
    except Exception:
        conn.rollback()
        raise
    conn.commit()
