"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache): single instance per process
    - uploads_url_path always has a leading slash and no trailing slash

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults for every setting: runs out-of-the-box from the repo root
    - placeholder_slots = 0 starts with an empty feed; 27 reproduces the slotted board
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage
    data_file: str = "data/posts.json"
    placeholder_slots: int = 0

    # Attachments
    uploads_dir: str = "uploads"
    uploads_url_path: str = "/uploads"
    max_attachment_bytes: int = 10 * 1024 * 1024

    @field_validator("uploads_url_path", mode="before")
    @classmethod
    def normalize_url_path(cls, v: str) -> str:
        if isinstance(v, str):
            return "/" + v.strip().strip("/")
        return v

    @field_validator("placeholder_slots")
    @classmethod
    def non_negative_slots(cls, v: int) -> int:
        if v < 0:
            raise ValueError("placeholder_slots must be >= 0")
        return v

    # Push channel
    broadcast_send_timeout_seconds: float = 5.0

    # API
    public_dir: str = "public"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
