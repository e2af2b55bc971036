"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database (e.g. postgresql+asyncpg://... or sqlite+aiosqlite:///./dev.db)
    database_url: str

    # Session tokens - no fallback secret; a missing JWT_SECRET fails at startup
    jwt_secret: str = Field(min_length=32)
    token_lifetime_days: int = Field(default=7, ge=1)

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    log_level: str = "INFO"

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # URL metadata fetching
    metadata_fetch_timeout: float = Field(default=10.0, gt=0)
    metadata_cache_size: int = Field(default=1024, ge=1)
    metadata_cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    metadata_block_private_hosts: bool = True

    # Pagination - None means no upper bound on `limit`
    max_page_limit: int | None = Field(default=None, ge=1)

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production mode (hides stack traces)."""
        return self.environment.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
