from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from typing import Any


class BaseRepo:
    """Thin query helpers; rows come back as sqlite3.Row (dict-like)."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _one(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Row | None:
        return self.conn.execute(sql, params or []).fetchone()

    def _all(self, sql: str, params: Sequence[Any] | None = None) -> list[sqlite3.Row]:
        return self.conn.execute(sql, params or []).fetchall()
