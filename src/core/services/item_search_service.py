from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from core.colors import NIBBLE_MAX_DISTANCE, nibble_distance, normalize_hex
from core.dtos import ItemDTO, ItemFilters, ItemOut, SearchCriteria, SearchResponse
from core.enums import ParamPolicy
from core.errors import BadRequestError
from core.services.owner_service import owner_info
from core.utils.common_functions import clamp, page_offset, title_case, total_pages


# Keep repos abstract to avoid tight coupling
class ItemsRepo(Protocol):
    def count(self, *, filters: ItemFilters) -> int: ...
    def list(
        self, *, filters: ItemFilters, limit: int | None = None, offset: int = 0
    ) -> Sequence[ItemDTO]: ...


class OwnerResolver(Protocol):
    def resolve_usernames(self, owner_ids: Iterable[str | None]) -> Mapping[str, str | None]: ...
    def cached_usernames(self, owner_ids: Iterable[str | None]) -> Mapping[str, str | None]: ...


def decorate_items(items: Sequence[ItemDTO], owners: OwnerResolver) -> list[ItemOut]:
    """Attach reforge label and owner decoration. Only called with a single page."""
    names = owners.resolve_usernames(it.extra.owner_player_uuid for it in items)
    out: list[ItemOut] = []
    for it in items:
        owner = it.extra.owner_player_uuid
        info = owner_info(owner, names.get(owner) if owner else None)
        out.append(
            ItemOut(
                id=it.id,
                uuid=it.uuid,
                name=it.name,
                color=it.color,
                rarity=it.rarity,
                price=it.price,
                reforge=title_case(it.extra.reforge),
                **info.model_dump(),
            )
        )
    return out


def rank_by_color(items: Iterable[ItemDTO], target: str | None, tolerance: int) -> list[ItemDTO]:
    """
    Exact colour matches first (name asc), then near matches (distance asc, name asc).
    Items without a parseable colour, or farther than *tolerance*, are dropped.
    Without a target every item counts as exact.
    """
    if not target:
        return sorted(items, key=lambda it: it.name)
    exact: list[ItemDTO] = []
    near: list[tuple[int, ItemDTO]] = []
    for it in items:
        color = normalize_hex(it.color)
        if color is None:
            continue
        dist = nibble_distance(color, target)
        if dist == 0:
            exact.append(it)
        elif dist <= tolerance:
            near.append((dist, it))
    exact.sort(key=lambda it: it.name)
    near.sort(key=lambda pair: (pair[0], pair[1].name))
    return exact + [it for _, it in near]


class ItemSearchService:
    """
    Item search by name, piece, uuid allowlist and exact/near colour.

    Tolerance 0 keeps the exact-colour predicate in SQL and pages there;
    any other tolerance ranks the full non-colour candidate set in memory.
    """

    def __init__(
        self,
        items: ItemsRepo,
        owners: OwnerResolver,
        *,
        max_limit: int = 200,
        color_policy: ParamPolicy = ParamPolicy.LENIENT,
    ) -> None:
        self._items = items
        self._owners = owners
        self._max_limit = max_limit
        self._color_policy = color_policy

    def search(self, criteria: SearchCriteria) -> SearchResponse:
        page = max(1, criteria.page)
        limit = clamp(criteria.limit, 1, self._max_limit)
        tolerance = clamp(criteria.tolerance, 0, NIBBLE_MAX_DISTANCE)
        offset = page_offset(page, limit)

        target = normalize_hex(criteria.color)
        if criteria.color and target is None and self._color_policy is ParamPolicy.STRICT:
            raise BadRequestError(f"Invalid color: {criteria.color!r}")

        filters = ItemFilters(
            uuids=criteria.uuids,
            uuid=criteria.uuid or None,
            name_like=criteria.q or None,
            piece=criteria.piece,
        )

        if target and tolerance == 0:
            exact_filters = filters.model_copy(update={"color_hex": target})
            total = self._items.count(filters=exact_filters)
            page_items = list(self._items.list(filters=exact_filters, limit=limit, offset=offset))
        else:
            ranked = rank_by_color(self._items.list(filters=filters), target, tolerance)
            total = len(ranked)
            page_items = ranked[offset : offset + limit]

        return SearchResponse(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit),
            items=decorate_items(page_items, self._owners),
            target_hex=target,
            tolerance=tolerance,
        )
