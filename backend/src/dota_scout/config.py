"""Application configuration via pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Settings
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # CORS - comma-separated origins (env var: CORS_ORIGINS)
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Upstream match-data API
    api_base_url: str = "http://localhost:3000/api"
    request_timeout: float = 15.0

    # Durable key/value storage (DuckDB file)
    storage_path: str = "data/scout_storage.duckdb"

    # Ancillary caches - bump the version to invalidate every cached entry
    cache_version: str = "1.0.0"
    reference_cache_ttl_hours: Optional[float] = 24
    team_cache_ttl_hours: Optional[float] = 24
    player_cache_ttl_hours: Optional[float] = 24
    match_cache_ttl_hours: Optional[float] = None  # never expires


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
