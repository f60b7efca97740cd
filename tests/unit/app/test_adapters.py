import sqlite3

import pytest

from app.adapters import parse_extra, row_to_item, rows_to
from core.dtos import ItemDTO, ItemExtra


@pytest.mark.parametrize(
    "raw,owner,reforge",
    [
        ('{"owner_playerUuid": "abc", "reforge": "fierce"}', "abc", "fierce"),
        ('{"owner": {"playerUuid": "nested"}}', "nested", None),
        (b'{"owner_playerUuid": "from-bytes"}', "from-bytes", None),
        ({"owner_playerUuid": "already-parsed"}, "already-parsed", None),
        ("{not json", None, None),
        ("[1, 2, 3]", None, None),
        ("", None, None),
        (None, None, None),
    ],
)
def test_parse_extra(raw, owner, reforge):
    extra = parse_extra(raw)
    assert extra == ItemExtra(owner_player_uuid=owner, reforge=reforge)


def test_row_to_item_from_sqlite_row():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    row = conn.execute(
        "SELECT 7 AS id, 'u-7' AS uuid, 'Wise Dragon Boots' AS name, '101010' AS color,"
        " NULL AS rarity, 1500 AS price, '{\"owner_playerUuid\": \"o\"}' AS extra"
    ).fetchone()
    conn.close()

    dto = row_to_item(row)
    assert isinstance(dto, ItemDTO)
    assert (dto.id, dto.uuid, dto.name, dto.color) == (7, "u-7", "Wise Dragon Boots", "101010")
    assert dto.rarity is None
    assert dto.price == 1500
    assert dto.extra.owner_player_uuid == "o"


def test_row_to_item_drops_non_numeric_price():
    row = {"id": 1, "uuid": "u", "name": "n", "color": None, "rarity": "RARE", "price": "n/a", "extra": None}
    dto = row_to_item(row)
    assert dto.price is None
    assert dto.color is None
    assert dto.extra == ItemExtra()


def test_rows_to_accepts_generators():
    rows = ({"id": i} for i in range(3))
    assert rows_to(lambda r: r["id"] * 2, rows) == [0, 2, 4]
