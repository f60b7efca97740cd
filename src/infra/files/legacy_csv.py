"""Reader for the exported old-dragon pieces table (CSV or TSV)."""

from __future__ import annotations

import csv
import io
from pathlib import Path

from core.errors import DatasetNotFoundError


def detect_delimiter(first_line: str) -> str:
    return "\t" if first_line.count("\t") > first_line.count(",") else ","


def parse_table(raw: str) -> list[dict[str, str]]:
    """Parse a header + rows table; every value is stripped, missing cells are ''."""
    clean = raw.lstrip("\ufeff").replace("\r", "")
    lines = [line for line in clean.split("\n") if line]
    if not lines:
        return []
    delimiter = detect_delimiter(lines[0])
    reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)
    header = [h.strip() for h in next(reader)]
    rows: list[dict[str, str]] = []
    for cols in reader:
        rows.append({h: (cols[i] if i < len(cols) else "").strip() for i, h in enumerate(header)})
    return rows


def load_rows(path: Path) -> list[dict[str, str]]:
    if not path.is_file():
        raise DatasetNotFoundError(f"Dataset not found at {path}")
    return parse_table(path.read_text(encoding="utf-8"))
