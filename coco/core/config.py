"""Client settings loaded from environment / .env file."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Care team API ─────────────────────────────────────
    api_base_url: str = "http://localhost:3000/api"
    api_token: str = ""  # sent as a bearer token when set
    http_timeout_seconds: float = 30.0
    abort_timeout_seconds: float = 15.0  # team data + notes reads

    # ── Cache TTLs ────────────────────────────────────────
    team_data_ttl_seconds: float = 300
    tasks_ttl_seconds: float = 120
    routines_ttl_seconds: float = 120
    notes_ttl_seconds: float = 120
    moods_ttl_seconds: float = 60

    # ── Persistence ───────────────────────────────────────
    storage_backend: Literal["file", "redis", "memory"] = "file"
    storage_path: str = "~/.coco/storage"
    redis_url: str = "redis://localhost:6379/0"
    # Connect and read limit for each Redis call; calls block the event loop
    redis_socket_timeout_seconds: float = 2.0
    data_storage_key: str = "data-storage"
    team_storage_key: str = "team-storage"


@lru_cache
def get_settings() -> Settings:
    return Settings()
