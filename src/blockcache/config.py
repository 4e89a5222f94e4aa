from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BLOCKCACHE_", env_file=".env", extra="ignore")

    # Cache entries
    default_ttl: float = Field(default=300.0, gt=0)  # seconds
    max_entries: int | None = Field(default=None, gt=0)
    max_bytes: int | None = Field(default=None, gt=0)
    eviction_policy: Literal["none", "lru"] = "none"
    sweep_interval: float | None = Field(default=60.0, gt=0)

    # Store backend
    store_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_namespace: str = ""

    # Publication events
    event_bus_backend: Literal["memory", "redis"] = "memory"
    invalidation_channel: str = "blockcache:publication"
    event_queue_size: int = Field(default=10000, gt=0)

    # Observability
    enable_metrics: bool = True
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()
