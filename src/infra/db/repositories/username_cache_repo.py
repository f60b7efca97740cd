from __future__ import annotations

import sqlite3

from infra.db.session import transaction

from .base import BaseRepo


class UsernameCacheRepo(BaseRepo):
    """username_cache(uuid TEXT PK, username TEXT, fetched_at INTEGER epoch-ms)."""

    def get_many(self, uuids: list[str]) -> dict[str, sqlite3.Row]:
        if not uuids:
            return {}
        rows = self._all(
            f"""
            SELECT uuid, username, fetched_at
            FROM username_cache
            WHERE uuid IN ({','.join('?' * len(uuids))})
            """,
            uuids,
        )
        return {row["uuid"]: row for row in rows}

    def put(self, uuid: str, username: str | None, fetched_at: int) -> None:
        with transaction(self.conn):
            self.conn.execute(
                """
                INSERT INTO username_cache(uuid, username, fetched_at)
                VALUES (?, ?, ?)
                ON CONFLICT(uuid) DO UPDATE SET
                    username = excluded.username,
                    fetched_at = excluded.fetched_at
                """,
                (uuid, username, fetched_at),
            )
