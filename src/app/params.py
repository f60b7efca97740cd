"""Query-string parsing for the JSON endpoints.

Only parsing and defaults live here; range clamping belongs to the services.
"""

from __future__ import annotations

from app.settings import Settings
from core.dtos import LegacyCriteria, SearchCriteria, SetCriteria
from core.enums import PieceKind
from core.utils.common_functions import parse_int

QueryDict = dict[str, list[str]]


def _first(qs: QueryDict, key: str) -> str | None:
    values = qs.get(key)
    if not values:
        return None
    return values[0].strip()


def _piece(raw: str | None) -> PieceKind | None:
    try:
        return PieceKind.from_any(raw)
    except ValueError:
        # unknown piece names are ignored, like "all"
        return None


def _uuid_list(raw: str | None) -> list[str] | None:
    """None when absent; a present-but-empty list selects nothing."""
    if raw is None:
        return None
    return [s.strip() for s in raw.split(",") if s.strip()]


def parse_search_params(qs: QueryDict, settings: Settings) -> SearchCriteria:
    return SearchCriteria(
        q=_first(qs, "q") or "",
        color=_first(qs, "color") or None,
        tolerance=parse_int(_first(qs, "tolerance"), 0),
        piece=_piece(_first(qs, "piece")),
        uuid=_first(qs, "uuid") or None,
        uuids=_uuid_list(_first(qs, "uuids")),
        page=parse_int(_first(qs, "page"), 1),
        limit=parse_int(_first(qs, "limit"), settings.search_default_limit),
    )


def parse_set_params(qs: QueryDict, settings: Settings) -> SetCriteria:
    return SetCriteria(
        q=_first(qs, "q") or None,
        color=_first(qs, "color") or None,
        tolerance=parse_int(_first(qs, "tolerance"), 0),
        page=parse_int(_first(qs, "page"), 1),
        limit=parse_int(_first(qs, "limit"), settings.sets_default_limit),
    )


def parse_legacy_params(qs: QueryDict, settings: Settings) -> LegacyCriteria:
    return LegacyCriteria(
        q=_first(qs, "q") or "",
        color=_first(qs, "color") or None,
        tolerance=parse_int(_first(qs, "tolerance"), 0),
        page=parse_int(_first(qs, "page"), 1),
        limit=parse_int(_first(qs, "limit"), settings.legacy_default_limit),
    )
