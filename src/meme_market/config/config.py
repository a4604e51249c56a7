"""Application configuration module."""

from functools import lru_cache
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.meme import tag_error


DEFAULT_FALLBACK_TAGS = ["meme", "funny", "viral", "internet", "humor"]


class Settings(BaseSettings):
    """
    Application settings using Pydantic BaseSettings.

    Automatically reads from environment variables.
    """

    # Application settings
    app_name: str = "Neon Meme Marketplace"
    app_version: str = "0.1.0"
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = True
    log_file: Optional[str] = None

    # API settings
    api_prefix: str = "/api"
    api_docs_url: str = "/docs"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./meme_market.db"
    database_echo: bool = False

    # CORS settings
    cors_origins: List[str] = ["*"]

    # Pagination
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # Ranking windows (days)
    trending_window_days: int = Field(default=30, ge=1)
    top_tag_window_days: int = Field(default=7, ge=1)

    # Tag statistics
    popular_tags_limit: int = Field(default=30, ge=1)
    tag_suggestion_limit: int = Field(default=10, ge=1)

    # OpenAI / DSPy settings (tag and description generation)
    openai_api_key: Optional[str] = None
    dspy_model: str = "gpt-4o-mini"
    max_generated_tags: int = 10

    # Fallbacks used when the tagging model fails
    fallback_description: str = "a meme image uploaded to the marketplace"
    fallback_tags: List[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_TAGS))

    # Validation
    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: Any) -> Any:
        """Validate and normalize database URL to an async driver."""
        if not v:
            return "sqlite+aiosqlite:///./meme_market.db"
        if isinstance(v, str):
            if v.startswith("sqlite:///"):
                return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("fallback_tags", mode="after")
    @classmethod
    def validate_fallback_tags(cls, v: List[str]) -> List[str]:
        """Fallback tags are stored as-is, so they must be valid catalog tags."""
        tags = [tag.strip().lower() for tag in v]
        if not tags:
            raise ValueError("at least one fallback tag is required")
        for tag in tags:
            error = tag_error(tag)
            if error:
                raise ValueError(f"invalid fallback tag {tag!r}: {error}")
        return tags

    @field_validator("fallback_description", mode="after")
    @classmethod
    def lowercase_fallback_description(cls, v: str) -> str:
        """Stored descriptions are lowercase, so the fallback is too."""
        return v.strip().lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


# Create settings instance
settings = get_settings()
