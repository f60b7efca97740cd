import json
import os
import sqlite3
import sys
import tempfile
import threading

import pytest

# Ensure repo root and 'src/' are on sys.path for imports like 'from core import colors'
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

_SRC_PATH = os.path.join(_REPO_ROOT, "src")
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


API_ENV_VAR = "API_BASE_URL"


def pytest_addoption(parser):
    parser.addoption(
        "--api-base-url",
        action="store",
        default=None,
        help="Override base URL for contract tests (e.g. http://localhost:8000/api)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "contract: mark a test as a contract test")


@pytest.fixture(scope="session")
def api_base_url(pytestconfig):
    # Priority: CLI flag > env var > None (contract tests will skip)
    cli = pytestconfig.getoption("--api-base-url")
    if cli:
        return cli
    return os.environ.get(API_ENV_VAR)


@pytest.fixture
def skip_if_no_api(api_base_url):
    if not api_base_url:
        pytest.skip(
            f"Skipping contract tests: {API_ENV_VAR} is unset and --api-base-url not provided"
        )


# --- Seed data ---

OWNER_A = "11111111-2222-3333-4444-555555555555"
OWNER_B = "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"


def _extra(owner=None, reforge=None):
    payload = {}
    if owner:
        payload["owner_playerUuid"] = owner
    if reforge:
        payload["reforge"] = reforge
    return json.dumps(payload)


# (uuid, name, color, rarity, price, extra)
SEED_ITEMS = [
    # Owner A: complete exact Wise Dragon set (3 pieces) + a stray helmet
    ("wd-chest-a", "Wise Dragon Chestplate", "101010", "LEGENDARY", 1000, _extra(OWNER_A, "ancient")),
    ("wd-legs-a", "Wise Dragon Leggings", "#101010", "LEGENDARY", 900, _extra(OWNER_A)),
    ("wd-boots-a", "Wise Dragon Boots", "101010", "LEGENDARY", 800, _extra(OWNER_A)),
    ("wd-helm-a", "Wise Dragon Helmet", "101010", "LEGENDARY", 700, _extra(OWNER_A)),
    # Owner B: Wise Dragon set one nibble step away on a low nibble (distance 1)
    ("wd-chest-b", "Wise Dragon Chestplate", "101011", "LEGENDARY", None, _extra(OWNER_B)),
    ("wd-legs-b", "Wise Dragon Leggings", "101011", "LEGENDARY", None, _extra(OWNER_B)),
    ("wd-boots-b", "Wise Dragon Boots", "101010", "LEGENDARY", None, _extra(OWNER_B)),
    # Owner A: farm suit missing its boots
    ("fs-helm-a", "Farm Suit Helmet", "FFFF00", "RARE", None, _extra(OWNER_A)),
    ("fs-chest-a", "Farm Suit Chestplate", "FFFF00", "RARE", None, _extra(OWNER_A)),
    ("fs-legs-a", "Farm Suit Leggings", "FFFF00", "RARE", None, _extra(OWNER_A)),
    # Misc
    ("no-color", "Plain Leather Boots", None, "COMMON", None, None),
    ("bad-extra", "Wise Dragon Boots", "101010", "LEGENDARY", None, "{not json"),
    ("trinket", "Random Trinket", "101010", "COMMON", None, _extra(OWNER_B)),
]


def seed_items(conn: sqlite3.Connection, items=SEED_ITEMS) -> None:
    conn.executemany(
        "INSERT INTO items(uuid, name, color, rarity, price, extra) VALUES (?,?,?,?,?,?)",
        items,
    )
    conn.commit()


# --- SQLite test DB fixtures ---


@pytest.fixture()
def temp_db_path():
    fd, path = tempfile.mkstemp(prefix="sniper_", suffix=".db")
    os.close(fd)
    try:
        yield path
    finally:
        for suffix in ("", "-wal", "-shm"):
            try:
                os.remove(path + suffix)
            except FileNotFoundError:
                pass


@pytest.fixture()
def items_conn():
    """In-memory SQLite connection with the real schema and seed items."""
    from infra.db.items_db import init_db

    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    init_db(conn)
    seed_items(conn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def offline_settings(temp_db_path, tmp_path):
    """Settings pointing at a temp DB with upstream username lookups disabled."""
    from app.settings import Settings

    return Settings(
        db_path=temp_db_path,
        legacy_csv_path=tmp_path / "old.csv",
        username_lookup_enabled=False,
    )


@pytest.fixture()
def live_server(monkeypatch, temp_db_path, tmp_path):
    """Run the real HTTP server in-process against a seeded temp DB; yields its /api base URL."""
    monkeypatch.setenv("APP_DB_PATH", temp_db_path)
    monkeypatch.setenv("APP_LEGACY_CSV_PATH", str(tmp_path / "old.csv"))
    monkeypatch.setenv("APP_USERNAME_LOOKUP_ENABLED", "false")

    from app import server as server_mod
    from app.settings import get_settings

    get_settings.cache_clear()
    httpd = server_mod.make_server("127.0.0.1", 0)
    conn = sqlite3.connect(temp_db_path)
    seed_items(conn)
    conn.close()

    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = httpd.server_address[:2]
        yield f"http://{host}:{port}/api"
    finally:
        httpd.shutdown()
        httpd.server_close()
        get_settings.cache_clear()
