from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from core.colors import NIBBLE_MAX_DISTANCE, nibble_distance, normalize_hex
from core.dtos import (
    ItemDTO,
    ItemFilters,
    PieceOut,
    SetCriteria,
    SetGroupOut,
    SetPieces,
    SetSearchResponse,
)
from core.enums import PIECE_ORDER, ParamPolicy, PieceKind
from core.errors import BadRequestError
from core.pieces import classify_piece, required_pieces, requires_helmet, set_label
from core.services.item_search_service import ItemsRepo, OwnerResolver
from core.services.owner_service import owner_info
from core.utils.common_functions import clamp, page_offset, total_pages


@dataclass
class SetGroup:
    """One owner's pieces for the requested set and colour (never persisted)."""

    owner_uuid: str
    set_label: str
    target_hex: str
    required: tuple[PieceKind, ...]
    pieces: dict[PieceKind, tuple[ItemDTO, str, int]] = field(default_factory=dict)

    def offer(self, kind: PieceKind, item: ItemDTO, hex_: str, dist: int) -> None:
        # First writer wins: a later item for a filled slot is dropped.
        self.pieces.setdefault(kind, (item, hex_, dist))

    @property
    def is_complete(self) -> bool:
        return all(kind in self.pieces for kind in self.required)

    @property
    def max_dist(self) -> int:
        return max(self.pieces[kind][2] for kind in self.required)

    @property
    def avg_dist(self) -> float:
        return sum(self.pieces[kind][2] for kind in self.required) / len(self.required)

    @property
    def is_exact(self) -> bool:
        return self.max_dist == 0

    @property
    def rarity(self) -> str | None:
        for kind in PIECE_ORDER:
            if kind in self.pieces and self.pieces[kind][0].rarity:
                return self.pieces[kind][0].rarity
        return None


def bucket_sets(
    items: Iterable[ItemDTO],
    *,
    target_hex: str,
    tolerance: int,
    query: str,
) -> list[SetGroup]:
    """Bucket candidate rows into per-owner sets; only complete sets are returned."""
    required = required_pieces(query)
    label = set_label(query)
    buckets: dict[tuple[str, str, str], SetGroup] = {}

    for item in items:
        owner = item.extra.owner_player_uuid
        if not owner:
            continue
        kind = classify_piece(item.name)
        if kind not in required:
            # unclassifiable, or a helmet for a dragon set
            continue
        hex_ = normalize_hex(item.color)
        if hex_ is None:
            continue
        dist = nibble_distance(hex_, target_hex)
        if dist > tolerance:
            continue
        key = (owner.lower(), label, target_hex)
        group = buckets.get(key)
        if group is None:
            group = buckets[key] = SetGroup(
                owner_uuid=owner, set_label=label, target_hex=target_hex, required=required
            )
        group.offer(kind, item, hex_, dist)

    return [g for g in buckets.values() if g.is_complete]


def rank_sets(
    groups: Iterable[SetGroup], usernames: Mapping[str, str | None] | None = None
) -> list[SetGroup]:
    """Exact sets first, then average distance, then username (owner uuid when unknown)."""
    usernames = usernames or {}

    def sort_key(g: SetGroup):
        name = usernames.get(g.owner_uuid) or g.owner_uuid
        return (not g.is_exact, g.avg_dist, name.lower())

    return sorted(groups, key=sort_key)


def _piece_out(group: SetGroup, kind: PieceKind) -> PieceOut | None:
    if kind not in group.pieces:
        return None
    item, hex_, _ = group.pieces[kind]
    return PieceOut(uuid=item.uuid, name=item.name, hex=hex_)


class SetSearchService:
    """
    Finds players owning a full armour set in (or near) a target colour.

    Dragon sets need chestplate, leggings and boots; every other set also
    needs a helmet. Missing/invalid colour or set name is either a 400
    (STRICT) or an empty ok payload (LENIENT), per ``param_policy``.
    """

    def __init__(
        self,
        items: ItemsRepo,
        owners: OwnerResolver,
        *,
        max_limit: int = 100,
        param_policy: ParamPolicy = ParamPolicy.STRICT,
    ) -> None:
        self._items = items
        self._owners = owners
        self._max_limit = max_limit
        self._param_policy = param_policy

    def _reject_or_empty(self, message: str, page: int, limit: int, target, tolerance):
        if self._param_policy is ParamPolicy.STRICT:
            raise BadRequestError(message)
        return SetSearchResponse(
            page=page,
            limit=limit,
            total=0,
            total_pages=0,
            items=[],
            target_hex=target,
            tolerance=tolerance,
        )

    def find_sets(self, criteria: SetCriteria) -> SetSearchResponse:
        page = max(1, criteria.page)
        limit = clamp(criteria.limit, 1, self._max_limit)
        tolerance = clamp(criteria.tolerance, 0, NIBBLE_MAX_DISTANCE)
        query = (criteria.q or "").strip()
        target = normalize_hex(criteria.color)

        if not criteria.color:
            return self._reject_or_empty("Missing required parameter: color", page, limit, None, tolerance)
        if target is None:
            return self._reject_or_empty(f"Invalid color: {criteria.color!r}", page, limit, None, tolerance)
        if not query:
            return self._reject_or_empty("Missing required parameter: q", page, limit, target, tolerance)

        filters = ItemFilters(name_like=query, color_hex=target if tolerance == 0 else None)
        groups = bucket_sets(
            self._items.list(filters=filters),
            target_hex=target,
            tolerance=tolerance,
            query=query,
        )
        # tie-break names come from the cache only; lookups stay page-only
        groups = rank_sets(groups, self._owners.cached_usernames(g.owner_uuid for g in groups))

        total = len(groups)
        offset = page_offset(page, limit)
        page_groups = groups[offset : offset + limit]
        names = self._owners.resolve_usernames(g.owner_uuid for g in page_groups)

        out = []
        for g in page_groups:
            info = owner_info(g.owner_uuid, names.get(g.owner_uuid))
            out.append(
                SetGroupOut(
                    set_label=g.set_label,
                    color=g.target_hex,
                    rarity=g.rarity,
                    is_exact=g.is_exact,
                    avg_dist=float(g.avg_dist),
                    max_dist=g.max_dist,
                    pieces=SetPieces(**{kind.value: _piece_out(g, kind) for kind in PIECE_ORDER}),
                    **info.model_dump(),
                )
            )

        return SetSearchResponse(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit),
            items=out,
            target_hex=target,
            tolerance=tolerance,
            requires_helmet=requires_helmet(query),
        )
