# filepath: src/infra/db/conn.py
from __future__ import annotations

import sqlite3

from app.settings import Settings, get_settings


def get_conn(settings: Settings | None = None) -> sqlite3.Connection:
    """
    Open a sqlite3 connection with row_factory set to Row so results
    behave like dicts. Read-only deployments open the file with mode=ro
    and never write journal files.
    """
    settings = settings or get_settings()
    if settings.read_only:
        conn = sqlite3.connect(
            f"file:{settings.db_path}?mode=ro", uri=True, check_same_thread=False
        )
        conn.execute("PRAGMA query_only = ON")
    else:
        conn = sqlite3.connect(str(settings.db_path), timeout=30, check_same_thread=False)
        conn.execute("PRAGMA busy_timeout=30000;")
    conn.row_factory = sqlite3.Row
    return conn
