import json
import sqlite3

import pytest

from app.settings import get_settings
from scripts import import_items


@pytest.fixture
def app_env(monkeypatch, temp_db_path):
    monkeypatch.setenv("APP_DB_PATH", temp_db_path)
    get_settings.cache_clear()
    yield temp_db_path
    get_settings.cache_clear()


def _count(path):
    conn = sqlite3.connect(path)
    try:
        return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]
    finally:
        conn.close()


def test_import_json(app_env, tmp_path, capsys):
    data = tmp_path / "items.json"
    data.write_text(
        json.dumps(
            {
                "items": [
                    {"uuid": "a", "name": "Wise Dragon Boots", "color": "101010", "extra": {"owner_playerUuid": "o"}},
                    {"uuid": "b", "name": "Wise Dragon Leggings"},
                    {"name": "no uuid, skipped"},
                ]
            }
        ),
        encoding="utf-8",
    )
    assert import_items.main([str(data)]) == 0
    assert _count(app_env) == 2
    assert "Imported 2 rows" in capsys.readouterr().out


def test_import_csv_is_idempotent(app_env, tmp_path):
    data = tmp_path / "items.csv"
    data.write_text("uuid,name,color,rarity,price\nx,Farm Suit Helmet,FFFF00,RARE,\n", encoding="utf-8")
    assert import_items.main([str(data)]) == 0
    assert import_items.main([str(data)]) == 0
    assert _count(app_env) == 1


def test_unsupported_extension(tmp_path):
    with pytest.raises(ValueError):
        import_items.read_records(tmp_path / "items.xml")


def test_refuses_in_read_only_mode(app_env, monkeypatch, tmp_path):
    monkeypatch.setenv("APP_READ_ONLY", "true")
    get_settings.cache_clear()
    data = tmp_path / "items.json"
    data.write_text("[]", encoding="utf-8")
    assert import_items.main([str(data)]) == 2
