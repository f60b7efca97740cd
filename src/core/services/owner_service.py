from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Protocol

from core.dtos import OwnerInfo
from core.utils.common_functions import flat_uuid

logger = logging.getLogger(__name__)

AVATAR_URL = "https://crafatar.com/avatars/{uuid}?size={size}&overlay"
MCUUID_URL = "https://mcuuid.net/?q={uuid}"
SKYCRYPT_URL = "https://sky.shiiyu.moe/stats/{uuid}"
PLANCKE_URL = "https://plancke.io/hypixel/player/stats/{name}"


class UsernameCache(Protocol):
    def get_many(self, uuids: list[str]) -> Mapping[str, Mapping[str, Any]]: ...
    def put(self, uuid: str, username: str | None, fetched_at: int) -> None: ...


# Returns the username (or None when the profile has none); raises on failure.
UsernameFetcher = Callable[[str], "str | None"]


def owner_info(
    owner_uuid: str | None,
    username: str | None = None,
    *,
    profile_uuid: str | None = None,
    plancke_by_uuid: bool = False,
) -> OwnerInfo:
    """Build owner decoration; every link is a plain template over uuid/username."""
    if not owner_uuid:
        return OwnerInfo()
    flat = owner_uuid.replace("-", "")
    skycrypt = SKYCRYPT_URL.format(uuid=flat)
    if profile_uuid:
        skycrypt = f"{skycrypt}/{profile_uuid}"
    plancke = None
    if username:
        plancke = PLANCKE_URL.format(name=username)
    elif plancke_by_uuid:
        plancke = PLANCKE_URL.format(name=flat)
    return OwnerInfo(
        owner_uuid=owner_uuid,
        owner_username=username,
        owner_avatar_url=AVATAR_URL.format(uuid=flat, size=20),
        owner_mcuuid_url=MCUUID_URL.format(uuid=flat),
        owner_plancke_url=plancke,
        owner_sky_crypt_url=skycrypt,
    )


class OwnerService:
    """
    Resolves owner UUIDs to usernames for one page of results.

    - At most ``max_lookups`` distinct owners are resolved per call; the rest stay None.
    - Fresh cache entries (younger than ``ttl_seconds``) are served without a lookup.
    - Misses are fetched concurrently; results land in a map, completion order is irrelevant.
    - A failed lookup yields None and is only cached when ``cache_failures`` is set.
    - ``cached_usernames`` reads the cache only, for ordering whole result sets.
    """

    def __init__(
        self,
        fetch_username: UsernameFetcher | None,
        cache: UsernameCache | None = None,
        *,
        max_lookups: int = 50,
        ttl_seconds: int = 24 * 60 * 60,
        workers: int = 16,
        cache_failures: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetch = fetch_username
        self._cache = cache
        self._max_lookups = max_lookups
        self._ttl_ms = ttl_seconds * 1000
        self._workers = workers
        self._cache_failures = cache_failures
        self._clock = clock

    def resolve_usernames(self, owner_ids: Iterable[str | None]) -> dict[str, str | None]:
        unique = list(dict.fromkeys(o for o in owner_ids if o))
        result: dict[str, str | None] = dict.fromkeys(unique)
        to_resolve = unique[: self._max_lookups]
        if not to_resolve:
            return result

        now_ms = int(self._clock() * 1000)
        keys = {o: flat_uuid(o) for o in to_resolve}
        fresh = self._fresh(keys, now_ms)
        result.update(fresh)

        pending = [o for o in to_resolve if o not in fresh]
        if not pending or self._fetch is None:
            return result

        fetched = self._fetch_all(list(dict.fromkeys(keys[o] for o in pending)))
        for flat, (ok, name) in fetched.items():
            if ok or self._cache_failures:
                self._store(flat, name, now_ms)
        for owner in pending:
            result[owner] = fetched[keys[owner]][1]
        return result

    def cached_usernames(self, owner_ids: Iterable[str | None]) -> dict[str, str | None]:
        """Usernames already in the cache and still fresh; never hits the network."""
        unique = list(dict.fromkeys(o for o in owner_ids if o))
        result: dict[str, str | None] = dict.fromkeys(unique)
        if unique:
            now_ms = int(self._clock() * 1000)
            result.update(self._fresh({o: flat_uuid(o) for o in unique}, now_ms))
        return result

    def decorate(self, owner_ids: Iterable[str | None]) -> dict[str, OwnerInfo]:
        names = self.resolve_usernames(owner_ids)
        return {owner: owner_info(owner, name) for owner, name in names.items()}

    # ------------------------------------------------------------------ internals
    def _fresh(self, keys: Mapping[str, str], now_ms: int) -> dict[str, str | None]:
        cached = self._cached(list(dict.fromkeys(keys.values())))
        out: dict[str, str | None] = {}
        for owner, flat in keys.items():
            hit = cached.get(flat)
            fetched_at = hit["fetched_at"] if hit else None
            if fetched_at and now_ms - fetched_at < self._ttl_ms:
                out[owner] = hit["username"]
        return out

    def _cached(self, flats: list[str]) -> Mapping[str, Mapping[str, Any]]:
        if self._cache is None:
            return {}
        try:
            return self._cache.get_many(flats)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("username cache read failed: %s", exc)
            return {}

    def _store(self, flat: str, name: str | None, now_ms: int) -> None:
        if self._cache is None:
            return
        try:
            self._cache.put(flat, name, now_ms)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("username cache write failed for %s: %s", flat, exc)

    def _fetch_one(self, flat: str) -> tuple[bool, str | None]:
        try:
            return True, self._fetch(flat)
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("username lookup failed for %s: %s", flat, exc)
            return False, None

    def _fetch_all(self, flats: list[str]) -> dict[str, tuple[bool, str | None]]:
        if not flats:
            return {}
        out: dict[str, tuple[bool, str | None]] = {}
        with ThreadPoolExecutor(max_workers=min(self._workers, len(flats))) as pool:
            futures = {pool.submit(self._fetch_one, flat): flat for flat in flats}
            for fut in as_completed(futures):
                out[futures[fut]] = fut.result()
        return out
