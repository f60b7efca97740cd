"""
SQLite schema and bulk writes for the item dataset.

Schema
------

items
    id     INTEGER PRIMARY KEY
    uuid   TEXT UNIQUE               – item instance uuid
    name   TEXT NOT NULL
    color  TEXT                      – canonical #RRGGBB, NULL when unparseable
    rarity TEXT
    price  INTEGER
    extra  JSON                      – owner_playerUuid, reforge, ...

username_cache
    uuid       TEXT PRIMARY KEY      – undashed, lower-case player uuid
    username   TEXT
    fetched_at INTEGER               – epoch milliseconds

The web app only reads ``items``; rows are written by ``scripts/import_items.py``.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Mapping
from typing import Any

from core.colors import normalize_hex
from infra.db.session import transaction

SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    id     INTEGER PRIMARY KEY,
    uuid   TEXT UNIQUE,
    name   TEXT NOT NULL,
    color  TEXT,
    rarity TEXT,
    price  INTEGER,
    extra  JSON
);

CREATE INDEX IF NOT EXISTS idx_items_uuid  ON items(uuid);
CREATE INDEX IF NOT EXISTS idx_items_color ON items(color);
CREATE INDEX IF NOT EXISTS idx_items_name  ON items(name);

CREATE TABLE IF NOT EXISTS username_cache (
    uuid       TEXT PRIMARY KEY,
    username   TEXT,
    fetched_at INTEGER
);
"""


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables if they don't already exist."""
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.executescript(SCHEMA)
    conn.commit()


def _extra_json(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def upsert_items(conn: sqlite3.Connection, rows: Iterable[Mapping[str, Any]]) -> int:
    """Insert or update items keyed on uuid. Returns the number of rows written."""
    written = 0
    with transaction(conn):
        for row in rows:
            conn.execute(
                """
                INSERT INTO items (uuid, name, color, rarity, price, extra)
                VALUES (:uuid, :name, :color, :rarity, :price, :extra)
                ON CONFLICT(uuid) DO UPDATE SET
                    name   = excluded.name,
                    color  = excluded.color,
                    rarity = excluded.rarity,
                    price  = excluded.price,
                    extra  = excluded.extra
                """,
                {
                    "uuid": row["uuid"],
                    "name": row["name"],
                    "color": normalize_hex(row.get("color")),
                    "rarity": row.get("rarity") or None,
                    "price": row.get("price") if row.get("price") not in ("", None) else None,
                    "extra": _extra_json(row.get("extra")),
                },
            )
            written += 1
    return written
