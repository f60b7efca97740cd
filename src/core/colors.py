"""Colour helpers shared by the search and set endpoints.

Two distance schemes live here:

* ``nibble_distance`` (0..405) backs ``/api/search`` and ``/api/sets``.
* ``rgb_manhattan_distance`` (0..765) backs the legacy ``/api/old`` dataset.

Each endpoint clamps its tolerance against the scheme it uses.
"""

from __future__ import annotations

import re

_HEX3 = re.compile(r"^[0-9A-Fa-f]{3}$")
_HEX6 = re.compile(r"^[0-9A-Fa-f]{6}$")

# High nibble of each channel weighs 8x the low nibble (RrGgBb).
NIBBLE_WEIGHTS = (8, 1, 8, 1, 8, 1)
NIBBLE_MAX_DISTANCE = sum(NIBBLE_WEIGHTS) * 15  # 405
RGB_MAX_DISTANCE = 255 * 3  # 765


def normalize_hex(value: str | None) -> str | None:
    """Return ``#RRGGBB`` (uppercase) or None when *value* is not a hex colour.

    Accepts an optional leading ``#`` and the 3-digit ``#RGB`` shorthand.
    """
    if not value:
        return None
    s = str(value).strip()
    if s.startswith("#"):
        s = s[1:]
    if _HEX3.match(s):
        s = "".join(c + c for c in s)
    if not _HEX6.match(s):
        return None
    return f"#{s.upper()}"


def _digits(value: str) -> str:
    return value.lstrip("#").upper()


def nibble_distance(a: str, b: str) -> int:
    """Weighted per-hex-digit distance between two canonical colours."""
    da, db = _digits(a), _digits(b)
    return sum(w * abs(int(x, 16) - int(y, 16)) for w, x, y in zip(NIBBLE_WEIGHTS, da, db))


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    s = _digits(value)
    return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)


def rgb_manhattan_distance(a: str, b: str) -> int:
    """Sum of absolute 8-bit channel differences (legacy dataset only)."""
    ra, rb = hex_to_rgb(a), hex_to_rgb(b)
    return sum(abs(x - y) for x, y in zip(ra, rb))
