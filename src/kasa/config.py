"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./kasa.db"
    db_echo: bool = False

    # AI categorization
    ai_categorization_enabled: bool = False
    gemini_api_key: str | None = None
    groq_api_key: str | None = None
    gemini_models: list[str] = [
        "gemini-3-flash",
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
    ]
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    groq_model: str = "llama-3.1-8b-instant"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    ai_request_timeout_seconds: float = 30.0
    ai_batch_size: int = 30
    ai_auto_learn_confidence: float = 0.9

    # Rule matching
    rule_cache_ttl_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
