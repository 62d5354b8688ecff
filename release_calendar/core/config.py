"""Application settings parsed from environment variables and defaults."""

import json
from functools import lru_cache
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BOOK_GENRE_IDS = ["001004008", "001001", "001005"]
DEFAULT_GAME_HARDWARE = ["Nintendo Switch", "PlayStation 5", "PlayStation 4", "Xbox Series X"]
# IGDB region enum: 5 = japan, 8 = worldwide
DEFAULT_IGDB_REGIONS = [5, 8]


def _split_list(value: Any) -> list[str] | None:
    """Normalize list settings from JSON, CSV, or list inputs."""
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in stripped.split(",") if item.strip()]
    return None


class Settings(BaseSettings):
    """Sync job configuration loaded from environment variables."""

    environment: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./release_calendar.db"
    release_table_name: str = "release_items"

    rakuten_app_id: Optional[str] = None
    rakuten_affiliate_id: Optional[str] = None
    rakuten_book_genre_ids: list[str] | str = Field(default_factory=lambda: DEFAULT_BOOK_GENRE_IDS.copy())
    rakuten_game_hardware: list[str] | str = Field(default_factory=lambda: DEFAULT_GAME_HARDWARE.copy())
    rakuten_hits: int = 30
    rakuten_request_delay_seconds: float = 1.0

    igdb_client_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("igdb_client_id", "twitch_client_id")
    )
    igdb_client_secret: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("igdb_client_secret", "twitch_client_secret")
    )
    igdb_region_codes: list[int] | str = Field(default_factory=lambda: DEFAULT_IGDB_REGIONS.copy())
    igdb_target_region: int = 5
    igdb_worldwide_region: int = 8
    igdb_window_days: int = 90
    igdb_result_limit: int = 100
    token_safety_margin_seconds: int = 300

    http_timeout_seconds: float = 15.0
    http_retry_attempts: int = 3

    redis_url: str = "redis://redis:6379/0"
    worker_queue_names: list[str] | str = Field(default_factory=lambda: ["sync"])
    sync_cron: str = "0 18 * * *"
    sync_job_timeout_seconds: int = 900

    @field_validator("rakuten_book_genre_ids", mode="before")
    @classmethod
    def _split_book_genres(cls, value: Any) -> list[str]:
        """Parse configured Rakuten book genre ids."""
        return _split_list(value) or DEFAULT_BOOK_GENRE_IDS.copy()

    @field_validator("rakuten_game_hardware", mode="before")
    @classmethod
    def _split_game_hardware(cls, value: Any) -> list[str]:
        """Parse configured Rakuten hardware names."""
        return _split_list(value) or DEFAULT_GAME_HARDWARE.copy()

    @field_validator("igdb_region_codes", mode="before")
    @classmethod
    def _split_region_codes(cls, value: Any) -> list[int]:
        """Parse IGDB region codes, ignoring entries that are not integers."""
        items = _split_list(value)
        if not items:
            return DEFAULT_IGDB_REGIONS.copy()
        codes: list[int] = []
        for item in items:
            try:
                codes.append(int(item))
            except ValueError:
                continue
        return codes or DEFAULT_IGDB_REGIONS.copy()

    @field_validator("worker_queue_names", mode="before")
    @classmethod
    def _split_worker_queue_names(cls, value: Any) -> list[str]:
        """Normalize worker queue names from JSON, CSV, or list inputs."""
        return _split_list(value) or ["sync"]

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if value.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{value}'.")
        return value.upper()

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()
