import pytest

from app.di import search_service_for_conn
from conftest import OWNER_A
from core.dtos import ItemDTO, ItemExtra, SearchCriteria
from core.enums import ParamPolicy, PieceKind
from core.errors import BadRequestError
from core.services.item_search_service import rank_by_color
from infra.db.items_db import upsert_items


@pytest.fixture
def service(items_conn, offline_settings):
    return search_service_for_conn(items_conn, offline_settings)


def _names(resp):
    return [it.name for it in resp.items]


def _item(id_, name, color):
    return ItemDTO(id=id_, uuid=f"u{id_}", name=name, color=color, extra=ItemExtra())


def test_search_without_filters_returns_everything_by_name(service):
    resp = service.search(SearchCriteria(limit=200))
    assert resp.ok is True
    assert resp.total == 13
    assert _names(resp) == sorted(_names(resp))
    assert resp.target_hex is None


def test_name_substring_is_case_insensitive_and_supports_wildcard(service):
    resp = service.search(SearchCriteria(q="farm suit"))
    assert resp.total == 3
    resp = service.search(SearchCriteria(q="wise*boots"))
    assert {it.uuid for it in resp.items} == {"wd-boots-a", "wd-boots-b", "bad-extra"}


def test_piece_filter_uses_keyword_table(service):
    resp = service.search(SearchCriteria(piece=PieceKind.BOOTS))
    assert {it.uuid for it in resp.items} == {"wd-boots-a", "wd-boots-b", "no-color", "bad-extra"}


def test_exact_color_fast_path(service):
    resp = service.search(SearchCriteria(q="wise dragon", color="101010", tolerance=0))
    assert resp.target_hex == "#101010"
    assert resp.tolerance == 0
    assert {it.uuid for it in resp.items} == {
        "wd-chest-a",
        "wd-legs-a",
        "wd-boots-a",
        "wd-helm-a",
        "wd-boots-b",
        "bad-extra",
    }


def test_near_matches_follow_exact_matches(service):
    resp = service.search(SearchCriteria(q="wise dragon", color="#101010", tolerance=5))
    uuids = [it.uuid for it in resp.items]
    assert resp.total == 8
    # the two distance-1 items come last
    assert set(uuids[-2:]) == {"wd-chest-b", "wd-legs-b"}
    assert _names(resp)[:6] == sorted(_names(resp)[:6])


def test_tolerance_boundary_is_inclusive():
    items = [_item(1, "A", "#000000"), _item(2, "B", "#000009"), _item(3, "C", "#00000A")]
    # #000009 is at distance 9, #00000A at 10
    assert [it.name for it in rank_by_color(items, "#000000", 9)] == ["A", "B"]
    assert [it.name for it in rank_by_color(items, "#000000", 10)] == ["A", "B", "C"]


def test_rank_drops_items_without_color_and_breaks_ties_by_name():
    items = [
        _item(1, "Zeta", "#000001"),
        _item(2, "Alpha", "#000001"),
        _item(3, "Nameless", None),
        _item(4, "Mid", "#000000"),
    ]
    ranked = rank_by_color(items, "#000000", 1)
    assert [it.name for it in ranked] == ["Mid", "Alpha", "Zeta"]


def test_tolerance_is_clamped(service):
    resp = service.search(SearchCriteria(color="#000000", tolerance=9999))
    assert resp.tolerance == 405
    resp = service.search(SearchCriteria(color="#000000", tolerance=-3))
    assert resp.tolerance == 0


def test_invalid_color_is_ignored_by_default(service):
    resp = service.search(SearchCriteria(q="farm suit", color="not-a-color"))
    assert resp.total == 3
    assert resp.target_hex is None


def test_invalid_color_rejected_with_strict_policy(items_conn, offline_settings):
    settings = offline_settings.model_copy(update={"search_color_policy": ParamPolicy.STRICT})
    service = search_service_for_conn(items_conn, settings)
    with pytest.raises(BadRequestError):
        service.search(SearchCriteria(color="zzz"))


def test_uuid_allowlist_overrides_name_and_piece(service):
    resp = service.search(
        SearchCriteria(q="nothing matches this", piece=PieceKind.HELMET, uuids=["trinket", "fs-legs-a"])
    )
    assert [it.uuid for it in resp.items] == ["fs-legs-a", "trinket"]


def test_uuid_allowlist_still_applies_color(service):
    resp = service.search(SearchCriteria(uuids=["trinket", "fs-legs-a"], color="#101010"))
    assert [it.uuid for it in resp.items] == ["trinket"]


def test_empty_allowlist_selects_nothing(service):
    resp = service.search(SearchCriteria(uuids=[]))
    assert resp.total == 0
    assert resp.total_pages == 0
    assert resp.items == []


def test_single_uuid_filter(service):
    resp = service.search(SearchCriteria(uuid="wd-legs-a"))
    assert [it.uuid for it in resp.items] == ["wd-legs-a"]


@pytest.mark.parametrize("color,tolerance", [(None, 0), ("#101010", 0), ("#101010", 40)])
def test_pagination_matches_slicing_full_result(service, color, tolerance):
    full = service.search(SearchCriteria(color=color, tolerance=tolerance, limit=200))
    n = 3
    page2 = service.search(SearchCriteria(color=color, tolerance=tolerance, page=2, limit=n))
    assert [it.uuid for it in page2.items] == [it.uuid for it in full.items][n : 2 * n]
    assert page2.total == full.total
    assert page2.total_pages == -(-full.total // n)


def test_limit_is_clamped(service):
    assert service.search(SearchCriteria(limit=0)).limit == 1
    assert service.search(SearchCriteria(limit=10_000)).limit == 200


def test_items_are_decorated_with_owner_and_reforge(service):
    resp = service.search(SearchCriteria(uuid="wd-chest-a"))
    item = resp.items[0]
    assert item.reforge == "Ancient"
    assert item.owner_uuid == OWNER_A
    assert item.owner_username is None  # lookups disabled
    flat = OWNER_A.replace("-", "")
    assert item.owner_sky_crypt_url == f"https://sky.shiiyu.moe/stats/{flat}"
    assert item.owner_mcuuid_url == f"https://mcuuid.net/?q={flat}"
    assert item.owner_plancke_url is None


def test_malformed_extra_only_loses_owner(service):
    resp = service.search(SearchCriteria(uuid="bad-extra"))
    item = resp.items[0]
    assert item.owner_uuid is None
    assert item.reforge == "Clean"


def test_response_serialises_with_camel_case_keys(service):
    payload = service.search(SearchCriteria(uuid="wd-chest-a")).to_json_dict()
    assert {"ok", "page", "limit", "total", "totalPages", "items", "targetHex", "tolerance"} <= set(payload)
    assert {"ownerUuid", "ownerUsername", "ownerSkyCryptUrl", "reforge"} <= set(payload["items"][0])


def test_exact_fast_path_agrees_with_ranked_path_for_imported_colours(service, items_conn):
    upsert_items(
        items_conn,
        [
            {"uuid": "cobalt-short", "name": "Cobalt Boots", "color": "#abc"},
            {"uuid": "cobalt-long", "name": "Cobalt Helmet", "color": "aaBBcc"},
        ],
    )
    exact = service.search(SearchCriteria(q="cobalt", color="#AABBCC", tolerance=0))
    ranked = service.search(SearchCriteria(q="cobalt", color="#AABBCC", tolerance=1))
    assert exact.total == ranked.total == 2
    assert [it.uuid for it in exact.items] == [it.uuid for it in ranked.items]
