from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Mapping, Sequence

from core.colors import normalize_hex, rgb_manhattan_distance
from core.dtos import LegacyCriteria, LegacyItemOut, LegacySearchResponse
from core.services.owner_service import owner_info
from core.utils.common_functions import clamp, page_offset, title_case, total_pages

# Raw columns searched by the free-text filter besides the display name.
_TEXT_COLUMNS = ("piece_type", "itemId", "reforge", "rarity", "currentOwner.playerUuid")


def name_from_piece(item_id: str | None, piece_type: str | None) -> str:
    raw = piece_type or item_id or ""
    if not raw:
        return "Old Dragon Piece"
    raw = re.sub(r"^OLD_DRAGON_", "Old Dragon ", raw)
    return title_case(raw.replace("_", " "), default="Old Dragon Piece")


def map_row(row: Mapping[str, str]) -> LegacyItemOut:
    owner = row.get("currentOwner.playerUuid") or None
    info = owner_info(
        owner,
        profile_uuid=row.get("currentOwner.profileUuid") or None,
        plancke_by_uuid=True,
    )
    return LegacyItemOut(
        uuid=row.get("_id") or row.get("id") or f"old_{uuid.uuid4().hex[:16]}",
        name=name_from_piece(row.get("itemId"), row.get("piece_type")),
        color=normalize_hex(row.get("color_hex")) or normalize_hex(row.get("colour")),
        rarity=row.get("rarity") or None,
        **info.model_dump(),
    )


def _text_hit(item: LegacyItemOut, row: Mapping[str, str], q: str) -> bool:
    if q in item.name.lower():
        return True
    return any(q in (row.get(col) or "").lower() for col in _TEXT_COLUMNS)


class LegacySearchService:
    """
    Search over the static old-dragon export.

    Colour matching here uses RGB Manhattan distance (0..765, tolerance
    allowed up to ``max_tolerance``), not the nibble distance of /api/search.
    """

    def __init__(
        self,
        load_rows: Callable[[], Sequence[Mapping[str, str]]],
        *,
        max_limit: int = 200,
        max_tolerance: int = 10000,
    ) -> None:
        self._load_rows = load_rows
        self._max_limit = max_limit
        self._max_tolerance = max_tolerance

    def search(self, criteria: LegacyCriteria) -> LegacySearchResponse:
        page = max(1, criteria.page)
        limit = clamp(criteria.limit, 1, self._max_limit)
        tolerance = clamp(criteria.tolerance, 0, self._max_tolerance)
        q = criteria.q.strip().lower()
        target = normalize_hex(criteria.color)

        pairs = [(map_row(row), row) for row in self._load_rows()]
        if q:
            pairs = [(item, row) for item, row in pairs if _text_hit(item, row, q)]
        items = [item for item, _ in pairs]
        if target:
            # rows with no colour are excluded when filtering by colour
            items = [
                it for it in items if it.color and rgb_manhattan_distance(it.color, target) <= tolerance
            ]

        total = len(items)
        offset = page_offset(page, limit)
        return LegacySearchResponse(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit, min_one=True),
            items=items[offset : offset + limit],
        )
