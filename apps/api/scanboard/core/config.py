"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    auth_provider: Literal["mock", "admin"] = "admin"
    admin_token: str | None = None

    vendor_provider: Literal["kiri", "fake"] = "kiri"
    vendor_api_base_url: str = "https://api.kiriengine.app/api"
    vendor_api_key: str | None = None
    vendor_timeout_seconds: float = 60.0

    webhook_signing_secret: str | None = None
    # Acknowledge vendor deliveries even when reconciliation fails, so the vendor does not retry.
    webhook_ack_on_error: bool = True

    store_backend: Literal["memory", "mongo"] = "memory"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "scanboard"
    mongo_collection: str = "jobs"

    default_model_quality: str = "1"
    default_texture_quality: str = "1"
    default_file_format: str = "GLB"
    default_is_mask: str = "1"
    default_texture_smoothing: str = "1"

    model_config = SettingsConfigDict(env_prefix="SCANBOARD_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
