"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class StoreSettings(BaseSettings):
    """Redis document store configuration.

    Variables keep the deployment's historical ``AS_DB*`` names
    (``AS_DBSERVER``, ``AS_DBPORT``, ...).
    """

    model_config = SettingsConfigDict(env_prefix="AS_DB")

    server: str = Field(
        default="localhost",
        description="Redis server host",
    )
    port: int = Field(
        default=6379,
        ge=1,
        le=65535,
        description="Redis server port",
    )
    password: SecretStr | None = Field(
        default=None,
        description="Redis password (optional for local)",
    )
    index: int = Field(
        default=0,
        ge=0,
        description="Logical Redis database number",
    )
    timeout: float = Field(
        default=5.0,
        gt=0,
        description="Per-operation timeout in seconds",
    )
    scan_count: int = Field(
        default=500,
        ge=1,
        description="COUNT hint for each SCAN page",
    )
    batch_size: int = Field(
        default=500,
        ge=1,
        description="Maximum keys fetched by one JSON.MGET",
    )


class SearchSettings(BaseSettings):
    """Key naming and search index configuration."""

    model_config = SettingsConfigDict(env_prefix="AS_SEARCH_")

    index_name: str = Field(
        default="idx_articles",
        description="RediSearch index declared over article documents",
    )
    key_prefix: str = Field(
        default="article:",
        description="Prefix prepended to article ids to form document keys",
    )
    max_results: int = Field(
        default=1000,
        ge=1,
        description="Maximum articles returned by one search",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8080,
        description="API server port",
    )

    # Nested settings
    store: StoreSettings = Field(default_factory=StoreSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
