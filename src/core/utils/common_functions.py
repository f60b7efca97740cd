"""Small helpers shared by the services and the HTTP parameter parsing."""

from __future__ import annotations

import math
import re


def clamp(value: int, lo: int, hi: int | None = None) -> int:
    value = max(lo, value)
    return value if hi is None else min(hi, value)


def parse_int(value: str | None, default: int) -> int:
    """Lenient integer parse: blanks and garbage fall back to *default*."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def total_pages(total: int, limit: int, *, min_one: bool = False) -> int:
    if not total:
        return 1 if min_one else 0
    return max(1, math.ceil(total / limit))


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def title_case(value: str | None, default: str = "Clean") -> str:
    """Lower-case then capitalise the first letter of every word."""
    if not value:
        return default
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), value.lower())


def flat_uuid(value: str) -> str:
    """Strip dashes and lower-case a player UUID."""
    return value.replace("-", "").lower()
