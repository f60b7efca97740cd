"""Import items from a JSON or CSV export into the configured sqlite database (see app.settings).

Each record needs ``uuid`` and ``name``; ``color``, ``rarity``, ``price`` and
``extra`` are optional. Existing rows (same uuid) are updated in place.
In CSV files, ``extra`` must be a JSON object encoded in the cell.

Usage:

    PYTHONPATH=src python3 -m scripts.import_items data/skyblock_items.json
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from contextlib import closing
from pathlib import Path

from app.settings import get_settings
from infra.db.conn import get_conn
from infra.db.items_db import init_db, upsert_items
from infra.db.repositories.items_repo import ItemsRepo


def read_records(path: Path) -> list[dict]:
    ext = path.suffix.lower()
    if ext == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("items", [])
        return list(data)
    if ext == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as fh:
            return [{k.strip(): (v or "").strip() for k, v in row.items()} for row in csv.DictReader(fh)]
    raise ValueError(f"Unsupported data file {path} (use .json or .csv)")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("data_file", type=Path, help="JSON array or CSV with a header row")
    args = parser.parse_args(argv)

    settings = get_settings()
    if settings.read_only:
        print("Refusing to import: APP_READ_ONLY is set.", file=sys.stderr)
        return 2

    records = [r for r in read_records(args.data_file) if r.get("uuid") and r.get("name")]
    with closing(get_conn(settings)) as conn:
        init_db(conn)
        written = upsert_items(conn, records)
        total = ItemsRepo(conn).total()

    print(f"Imported {written} rows. Total rows: {total}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
