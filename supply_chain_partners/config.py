"""
Centralized application configuration using Pydantic v2 BaseSettings.

Loads environment variables and provides sane defaults. Import and call
`get_settings()` rather than constructing `AppSettings` directly to benefit from
cached settings and env loading.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root (parent of the supply_chain_partners package)
_PROJECT_ROOT = Path(__file__).parent.parent


class AppSettings(BaseSettings):
    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )
    # Server
    app_name: str = Field(default="Supply Chain Partners API")
    debug: bool = Field(default=False)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Path = Field(default=Path("logs"), alias="LOG_DIR")

    # ArangoDB
    arango_host: str = Field(default="http://localhost:8529", alias="ARANGO_HOST")
    arango_db_name: str = Field(default="supply_chain", alias="ARANGO_DB_NAME")
    arango_username: str = Field(default="root", alias="ARANGO_USERNAME")
    arango_password: str = Field(default="", alias="ARANGO_PASSWORD")
    arango_max_retries: int = Field(default=3, alias="ARANGO_MAX_RETRIES")
    arango_retry_delay: int = Field(default=2, alias="ARANGO_RETRY_DELAY")

    # Collections
    partners_collection: str = Field(default="partners", alias="PARTNERS_COLLECTION")
    companies_collection: str = Field(default="companies", alias="COMPANIES_COLLECTION")

    # Production Mode
    production_mode: bool = Field(
        default=False,
        alias="PRODUCTION_MODE",
        description="Enable production mode (disables debug features, enables security measures)",
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        alias="RATE_LIMIT_ENABLED",
        description="Enable rate limiting middleware",
    )
    rate_limit_per_minute: int = Field(
        default=100,
        alias="RATE_LIMIT_PER_MINUTE",
        description="Maximum requests per minute per IP",
    )
    rate_limit_per_minute_authenticated: int = Field(
        default=200,
        alias="RATE_LIMIT_PER_MINUTE_AUTHENTICATED",
        description="Maximum requests per minute for API key authenticated requests",
    )

    # Request Limits
    max_request_size_mb: int = Field(
        default=1,
        alias="MAX_REQUEST_SIZE_MB",
        description="Maximum request body size in megabytes",
    )

    # CORS (Production)
    cors_allowed_origins_raw: str = Field(
        default="",
        alias="CORS_ALLOWED_ORIGINS",
        description="Comma-separated list of allowed CORS origins (required in production)",
    )

    @property
    def cors_allowed_origins(self) -> list[str]:
        """Parse CORS allowed origins from comma-separated string."""
        if not self.cors_allowed_origins_raw:
            return self.cors_allow_origins
        return [
            origin.strip() for origin in self.cors_allowed_origins_raw.split(",") if origin.strip()
        ]

    # API keys guard the admin endpoints (format: key1:name1,key2:name2)
    api_keys_raw: str = Field(
        default="",
        alias="API_KEYS",
        description="API keys for admin endpoints (format: key1:name1,key2:name2)",
    )

    @property
    def api_keys(self) -> dict[str, str]:
        """Parse API keys from environment variable format."""
        if not self.api_keys_raw:
            return {}
        result: dict[str, str] = {}
        for pair in self.api_keys_raw.split(","):
            pair = pair.strip()
            if ":" in pair:
                key, name = pair.split(":", 1)
                result[key.strip()] = name.strip()
        return result

    @model_validator(mode="after")
    def validate_production_settings(self) -> AppSettings:
        """Validate production settings after initialization."""
        if self.production_mode:
            if not self.cors_allowed_origins:
                raise ValueError("CORS_ALLOWED_ORIGINS must be set when PRODUCTION_MODE=true")
            if "*" in self.cors_allowed_origins:
                raise ValueError("CORS_ALLOWED_ORIGINS cannot contain '*' in production mode")
            if self.debug:
                raise ValueError("DEBUG must be false when PRODUCTION_MODE=true")

        if self.rate_limit_per_minute <= 0:
            raise ValueError("RATE_LIMIT_PER_MINUTE must be greater than 0")
        if self.rate_limit_per_minute_authenticated < self.rate_limit_per_minute:
            raise ValueError("RATE_LIMIT_PER_MINUTE_AUTHENTICATED must be >= RATE_LIMIT_PER_MINUTE")

        if not (1 <= self.max_request_size_mb <= 100):
            raise ValueError("MAX_REQUEST_SIZE_MB must be between 1 and 100")
        if self.arango_max_retries < 1:
            raise ValueError("ARANGO_MAX_RETRIES must be at least 1")

        return self


@lru_cache
def get_settings() -> AppSettings:
    """Return cached settings instance (singleton for process)."""
    return AppSettings()  # type: ignore[arg-type]
