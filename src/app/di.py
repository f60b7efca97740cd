from __future__ import annotations

import sqlite3
from functools import partial

from app.adapters import row_to_item, rows_to
from app.settings import Settings, get_settings
from core.dtos import ItemFilters
from core.services.item_search_service import ItemSearchService
from core.services.legacy_search_service import LegacySearchService
from core.services.owner_service import OwnerService, UsernameFetcher
from core.services.set_search_service import SetSearchService

# Concrete repos
from infra.db.repositories.items_repo import ItemsRepo as ItemsRepoImpl
from infra.db.repositories.username_cache_repo import UsernameCacheRepo
from infra.files.legacy_csv import load_rows
from utils.mojang_api import fetch_username

# -----------------------------
# Adapters to satisfy Protocols
# -----------------------------


class _ItemsRepoAdapter:
    """Adapts ItemsRepoImpl to the ItemsRepo Protocol; rows become ItemDTOs here, once."""

    def __init__(self, impl: ItemsRepoImpl) -> None:
        self._impl = impl

    # Protocol: def count(self, *, filters: ItemFilters) -> int
    def count(self, *, filters: ItemFilters) -> int:
        return self._impl.count_items(filters)

    # Protocol: def list(self, *, filters, limit=None, offset=0) -> Sequence[ItemDTO]
    def list(self, *, filters: ItemFilters, limit: int | None = None, offset: int = 0):
        return rows_to(row_to_item, self._impl.list_items(filters, limit=limit, offset=offset))


def _username_fetcher(settings: Settings) -> UsernameFetcher | None:
    if not settings.username_lookup_enabled:
        return None
    return partial(
        fetch_username,
        url_template=settings.username_lookup_url,
        timeout=settings.username_lookup_timeout,
    )


# -----------------------------
# Factories used by route handlers
# -----------------------------


def owner_service_for_conn(conn: sqlite3.Connection, settings: Settings | None = None) -> OwnerService:
    settings = settings or get_settings()
    # Read-only deployments cannot write the cache; look up directly instead.
    cache = None if settings.read_only else UsernameCacheRepo(conn)
    return OwnerService(
        _username_fetcher(settings),
        cache,
        max_lookups=settings.max_owner_lookups,
        ttl_seconds=settings.username_cache_ttl_seconds,
        workers=settings.owner_lookup_workers,
        cache_failures=settings.cache_failed_lookups,
    )


def search_service_for_conn(
    conn: sqlite3.Connection, settings: Settings | None = None
) -> ItemSearchService:
    settings = settings or get_settings()
    return ItemSearchService(
        items=_ItemsRepoAdapter(ItemsRepoImpl(conn)),
        owners=owner_service_for_conn(conn, settings),
        max_limit=settings.search_max_limit,
        color_policy=settings.search_color_policy,
    )


def set_search_service_for_conn(
    conn: sqlite3.Connection, settings: Settings | None = None
) -> SetSearchService:
    settings = settings or get_settings()
    return SetSearchService(
        items=_ItemsRepoAdapter(ItemsRepoImpl(conn)),
        owners=owner_service_for_conn(conn, settings),
        max_limit=settings.sets_max_limit,
        param_policy=settings.sets_param_policy,
    )


def get_legacy_search_service(settings: Settings | None = None) -> LegacySearchService:
    settings = settings or get_settings()
    return LegacySearchService(
        partial(load_rows, settings.legacy_csv_path),
        max_limit=settings.legacy_max_limit,
        max_tolerance=settings.legacy_max_tolerance,
    )
