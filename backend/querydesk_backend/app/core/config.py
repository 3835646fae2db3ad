"""Centralized configuration management for QueryDesk."""

import os
from datetime import timedelta
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseModel):
    """Connection settings for the Redis instance holding sessions and caches."""

    url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    password: Optional[str] = Field(default=None, description="Redis password")
    socket_timeout: float = Field(default=30.0, gt=0, description="Read/write timeout in seconds")
    socket_connect_timeout: float = Field(default=10.0, gt=0, description="Connect timeout in seconds")
    key_prefix: str = Field(default="", description="Prefix applied to every key")


class WarehouseSettings(BaseModel):
    """Settings related to the shared DuckDB engine."""

    path: str = Field(default=":memory:", description="DuckDB database path")
    threads: int = Field(default=4, ge=1, description="Number of DuckDB threads to use")


class TranslatorSettings(BaseModel):
    """Natural language to SQL model configuration."""

    provider: Literal["anthropic"] = Field(default="anthropic", description="Translation provider")
    model: str = Field(default="claude-3-5-sonnet-20241022", description="Model identifier")
    api_key: Optional[str] = Field(default=None, description="API key for the provider")
    api_base: Optional[str] = Field(default=None, description="Override base URL for provider")
    max_output_tokens: int = Field(default=1000, ge=1, description="Output token cap")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Request timeout in seconds")


class SessionSettings(BaseModel):
    """Workspace lifetime and cache TTLs."""

    ttl_hours: int = Field(default=24, ge=1, description="Sliding TTL of a workspace")
    result_ttl_seconds: int = Field(default=3600, ge=1, description="TTL of cached results")
    idle_threshold_hours: int = Field(default=24, ge=1, description="Idle time before the sweeper reclaims")
    sweep_interval_seconds: int = Field(default=3600, ge=1, description="Time between sweeps")
    sweeper_enabled: bool = Field(default=True, description="Run the background sweeper")

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_hours * 60 * 60

    @property
    def idle_threshold(self) -> timedelta:
        return timedelta(hours=self.idle_threshold_hours)

    @property
    def record_ttl_seconds(self) -> int:
        """Lifetime of a session record and its schema entry.

        At least one sweep interval longer than the idle threshold, so every idle
        record is still present when the sweeper looks for it.
        """
        reclaim_after = int(self.idle_threshold.total_seconds()) + self.sweep_interval_seconds
        return max(self.ttl_seconds, reclaim_after)


class QueryDeskSettings(BaseSettings):
    """Application-wide settings loaded from env, .env, and defaults."""

    kv_backend: Literal["redis", "memory"] = Field(default="redis", description="Key-value store backend")
    redis: RedisSettings = Field(default_factory=RedisSettings)
    warehouse: WarehouseSettings = Field(default_factory=WarehouseSettings)
    translator: TranslatorSettings = Field(default_factory=TranslatorSettings)
    sessions: SessionSettings = Field(default_factory=SessionSettings)
    host: str = Field(default="0.0.0.0", description="Bind address of the HTTP server")
    port: int = Field(default=8080, ge=1, le=65535, description="Port of the HTTP server")
    log_level: str = Field(default="INFO", description="Log verbosity")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(
        env_prefix="QUERYDESK_",
        env_file=".env",
        extra="ignore",
        env_nested_delimiter="__",
    )

    def prepare_environment(self) -> None:
        """Derive settings that fall back to provider-standard variables."""

        if not self.translator.api_key:
            self.translator.api_key = os.getenv("ANTHROPIC_API_KEY") or os.getenv("AI_API_KEY")


@lru_cache(maxsize=1)
def get_settings() -> QueryDeskSettings:
    """Return a cached settings instance."""

    settings = QueryDeskSettings()
    settings.prepare_environment()
    return settings
