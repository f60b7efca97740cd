"""Armour slot inference from item display names."""

from __future__ import annotations

import re

from core.enums import PieceKind
from core.utils.common_functions import title_case

# Ordered: the first kind whose patterns match wins.
_PIECE_PATTERNS: tuple[tuple[PieceKind, tuple[re.Pattern, ...]], ...] = (
    (
        PieceKind.HELMET,
        (re.compile(r"helmet", re.I), re.compile(r"helm", re.I), re.compile(r"\bcap\b", re.I)),
    ),
    (PieceKind.CHESTPLATE, (re.compile(r"chestplate", re.I), re.compile(r"chest", re.I))),
    (
        PieceKind.LEGGINGS,
        (re.compile(r"legging", re.I), re.compile(r"pants", re.I), re.compile(r"\blegs?\b", re.I)),
    ),
    (PieceKind.BOOTS, (re.compile(r"boot", re.I), re.compile(r"shoe", re.I))),
)

# Keyword groups used by the item search "piece" filter (pushed down to SQL).
PIECE_SEARCH_KEYWORDS: dict[PieceKind, tuple[str, ...]] = {
    PieceKind.HELMET: ("helmet", "helm"),
    PieceKind.CHESTPLATE: ("chest",),
    PieceKind.LEGGINGS: ("legging", "pants"),
    PieceKind.BOOTS: ("boot", "shoe"),
}

THREE_PIECE = (PieceKind.CHESTPLATE, PieceKind.LEGGINGS, PieceKind.BOOTS)
FOUR_PIECE = (PieceKind.HELMET, *THREE_PIECE)


def classify_piece(name: str | None) -> PieceKind | None:
    if not name:
        return None
    for kind, patterns in _PIECE_PATTERNS:
        if any(p.search(name) for p in patterns):
            return kind
    return None


def requires_helmet(set_query: str) -> bool:
    # Dragon sets have no helmet slot.
    return "dragon" not in (set_query or "").lower()


def required_pieces(set_query: str) -> tuple[PieceKind, ...]:
    return FOUR_PIECE if requires_helmet(set_query) else THREE_PIECE


def set_label(set_query: str) -> str:
    return f"{title_case(set_query.strip(), default='')} Set".strip()
