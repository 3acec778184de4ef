# ABOUTME: Centralized configuration using Pydantic Settings.
# ABOUTME: Loads Congress API, Ollama, database, scheduler and logging settings from env and .env.

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Congress.gov API
    congress_api_key: SecretStr | None = None
    congress_api_base_url: str = "https://api.congress.gov/v3"
    congress_api_timeout: float = 10.0
    congress_api_retry_attempts: int = Field(default=3, ge=0)

    # Ollama (local model service)
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "gpt-oss:20b"
    ollama_timeout: float = 60.0
    ollama_temperature: float = 0.2
    ollama_bootstrap_enabled: bool = True

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "legistrack"
    db_user: str = "legistrack"
    db_password: SecretStr | None = None
    db_pool_size: int = 5
    db_pool_max_overflow: int = 10
    db_echo: bool = False

    @property
    def database_url(self) -> str:
        """Build async PostgreSQL connection URL."""
        password = self.db_password.get_secret_value() if self.db_password else ""
        return f"postgresql+asyncpg://{self.db_user}:{password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Scheduled ingestion
    ingestion_enabled: bool = True
    ingestion_interval_seconds: int = Field(default=6 * 60 * 60, ge=1)
    ingestion_lookback_days: int = Field(default=7, ge=1)

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"

    @field_validator("congress_api_base_url")
    @classmethod
    def _require_http_scheme(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("congress_api_base_url must start with http/https")
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables and .env file.
    The Congress API key is optional here and only checked when the client is used.
    """
    return Settings()
