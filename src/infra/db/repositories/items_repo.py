from __future__ import annotations

import sqlite3
from typing import Any

from core.dtos import ItemFilters
from core.pieces import PIECE_SEARCH_KEYWORDS

from .base import BaseRepo

_COLUMNS = "id, uuid, name, color, rarity, price, extra"


class ItemsRepo(BaseRepo):
    @staticmethod
    def _where(filters: ItemFilters | None) -> tuple[str, list[Any]]:
        """
        Build the WHERE clause for the non-ranking filters.
        An item-uuid allowlist replaces uuid/name/piece predicates; the
        colour predicate (exact, canonical) always applies when given.
        """
        filters = filters or ItemFilters()
        clauses: list[str] = []
        params: list[Any] = []

        if filters.uuids is not None:
            if filters.uuids:
                clauses.append(f"uuid IN ({','.join('?' * len(filters.uuids))})")
                params.extend(filters.uuids)
            else:
                clauses.append("1=0")
        else:
            if filters.uuid:
                clauses.append("uuid = ?")
                params.append(filters.uuid)
            if filters.name_like:
                clauses.append("name LIKE ?")
                params.append(f"%{filters.name_like.replace('*', '%')}%")
            if filters.piece is not None:
                terms = PIECE_SEARCH_KEYWORDS[filters.piece]
                clauses.append("(" + " OR ".join("LOWER(name) LIKE ?" for _ in terms) + ")")
                params.extend(f"%{t}%" for t in terms)

        if filters.color_hex:
            clauses.append("UPPER(REPLACE(COALESCE(color, ''), '#', '')) = ?")
            params.append(filters.color_hex.lstrip("#").upper())

        where = " AND ".join(clauses) if clauses else "1=1"
        return where, params

    def count_items(self, filters: ItemFilters | None = None) -> int:
        where, params = self._where(filters)
        row = self._one(f"SELECT COUNT(*) AS c FROM items WHERE {where}", params)
        return int(row["c"]) if row else 0

    def list_items(
        self,
        filters: ItemFilters | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[sqlite3.Row]:
        """
        Rows ordered by name (then id for a stable order).
        Columns: id, uuid, name, color, rarity, price, extra
        """
        where, params = self._where(filters)
        sql = f"SELECT {_COLUMNS} FROM items WHERE {where} ORDER BY name, id"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = [*params, limit, offset]
        return self._all(sql, params)

    def total(self) -> int:
        row = self._one("SELECT COUNT(*) AS c FROM items")
        return int(row["c"]) if row else 0

    def newest(self, limit: int = 3) -> list[sqlite3.Row]:
        return self._all(
            """
            SELECT uuid, name, color, rarity
            FROM items
            ORDER BY id DESC
            LIMIT ?
            """,
            [limit],
        )
