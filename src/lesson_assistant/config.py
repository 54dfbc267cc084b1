"""Centralized application configuration via environment variables."""

from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    LLM API keys use SecretStr so they never end up in logs or reprs.
    The database URL is assembled from the same variables the official
    PostgreSQL Docker image uses.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App ---
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "DEBUG"
    # --- CORS ---
    cors_allowed_origins: list[str] = []
    cors_allow_credentials: bool = False
    cors_allowed_methods: list[str] = ["GET", "POST", "PATCH"]
    cors_allowed_headers: list[str] = ["Content-Type", "X-API-Key"]

    # --- PostgreSQL ---
    postgres_user: str = "lesson_assistant"
    postgres_password: SecretStr = SecretStr("secret")
    postgres_db: str = "lesson_assistant"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Assemble database URL from components.

        The psycopg v3 driver serves both the async app engine and the
        sync engine used by CLI scripts and Alembic.
        """
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+psycopg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # --- LLM API Keys ---
    gemini_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    deepseek_api_key: SecretStr | None = None

    # --- LLM Default Models ---
    gemini_default_model: str = "gemini-2.5-flash"
    anthropic_default_model: str = "claude-sonnet-4-20250514"
    openai_default_model: str = "gpt-4o-mini"
    deepseek_default_model: str = "deepseek-chat"

    # DeepSeek speaks the OpenAI wire format at a different base_url.
    deepseek_base_url: str = "https://api.deepseek.com"

    # --- Model Registry / Prompts ---
    model_registry_path: Path = Path("config/models.yaml")
    chat_prompt_path: Path = Path("prompts/lesson_chat.yaml")
    chat_action: str = "lesson_chat"
    completion_timeout_seconds: float = 60.0

    # --- Progress ---
    # Fraction of the lesson duration the playback position must exceed
    # on pause/stop/end for the lesson to count as completed.
    completion_threshold: float = Field(default=0.9, gt=0.0, le=1.0)

    # --- Video embed ---
    video_embed_base_url: str = "https://iframe.mediadelivery.net/embed"
    video_library_id: str = "580881"

    # --- Convenience properties ---
    @property
    def is_dev(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton.

    Usage::

        from lesson_assistant.config import get_settings
        settings = get_settings()
    """
    return Settings()


settings = get_settings()
