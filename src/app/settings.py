# src/app/settings.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.enums import ParamPolicy

# Compute project root: repo/ (two levels up from this file: repo/src/app/settings.py)
PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DB = DATA_DIR / "skyblock.db"
DEFAULT_LEGACY_CSV = DATA_DIR / "old_dragon_pieces_clean.csv"


class Settings(BaseSettings):
    """
    Central application configuration.

    Sources (highest precedence first):
      1. Environment variables (prefixed with APP_, e.g. APP_DB_PATH)
      2. .env file at data/.env
      3. Defaults below
    """

    model_config = SettingsConfigDict(
        env_file=str(DATA_DIR / ".env"),
        env_prefix="APP_",
        extra="ignore",
    )

    # App/server
    debug: bool = Field(default=False, description="Enable debug logging")
    host: str = Field(default="127.0.0.1", description="Server host to bind")
    port: int = Field(default=8000, description="Server port to bind")

    # Storage
    db_path: Path = Field(default=DEFAULT_DB, description="SQLite DB path")
    read_only: bool = Field(
        default=False, description="Open the DB read-only (no schema writes, no username cache)"
    )
    legacy_csv_path: Path = Field(
        default=DEFAULT_LEGACY_CSV, description="CSV/TSV dataset served by /api/old"
    )

    # Username lookups
    username_lookup_enabled: bool = Field(default=True)
    username_lookup_url: str = Field(
        default="https://api.ashcon.app/mojang/v2/user/{uuid}",
        description="Profile lookup URL template; {uuid} is the undashed player UUID",
    )
    username_lookup_timeout: float = Field(default=5.0, gt=0, description="Seconds per lookup")
    username_cache_ttl_seconds: int = Field(default=24 * 60 * 60, ge=0)
    max_owner_lookups: int = Field(default=50, ge=0, description="Lookups per request")
    owner_lookup_workers: int = Field(default=16, ge=1)
    cache_failed_lookups: bool = Field(
        default=False, description="Also cache failed lookups as null until the TTL expires"
    )

    # /api/search
    search_default_limit: int = Field(default=50, ge=1)
    search_max_limit: int = Field(default=200, ge=1)
    search_color_policy: ParamPolicy = Field(
        default=ParamPolicy.LENIENT, description="strict: 400 on unparseable color"
    )

    # /api/sets
    sets_default_limit: int = Field(default=24, ge=1)
    sets_max_limit: int = Field(default=100, ge=1)
    sets_param_policy: ParamPolicy = Field(
        default=ParamPolicy.STRICT, description="lenient: empty ok payload on missing color/q"
    )

    # /api/old
    legacy_default_limit: int = Field(default=24, ge=1)
    legacy_max_limit: int = Field(default=200, ge=1)
    legacy_max_tolerance: int = Field(default=10000, ge=0)

    # --- Validators / normalizers ---
    @field_validator("db_path", "legacy_csv_path", mode="before")
    @classmethod
    def _expand_user_and_env(cls, v):
        if isinstance(v, str | Path):
            return Path(str(v)).expanduser()
        return v

    @field_validator("search_color_policy", "sets_param_policy", mode="before")
    @classmethod
    def _parse_policy(cls, v):
        return ParamPolicy.from_any(v)

    # --- Helpers ---
    def ensure_directories(self) -> None:
        """Create the parent dir for the DB (idempotent)."""
        if not self.read_only:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Singleton-style accessor so imports are cheap and consistent system-wide.
    Also ensures directories exist on first access.
    """
    s = Settings()
    s.ensure_directories()
    return s


if __name__ == "__main__":
    # Handy for a quick sanity check:
    s = get_settings()
    print("PROJECT_ROOT:", PROJECT_ROOT)
    print("debug:", s.debug)
    print("host:", s.host, "port:", s.port)
    print("db_path:", s.db_path, "read_only:", s.read_only)
    print("legacy_csv_path:", s.legacy_csv_path)
    print("username lookups:", s.username_lookup_enabled, s.username_lookup_url)
    print("search_color_policy:", s.search_color_policy.value)
    print("sets_param_policy:", s.sets_param_policy.value)
