"""Application settings loaded from the environment."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration.

    Values come from environment variables (case-insensitive) or a local
    ``.env`` file, e.g. ``DATABASE_URL=postgresql+psycopg2://...``.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./objective_docs.db"
    sql_echo: bool = False
    # Aborts any single statement that runs longer than this (PostgreSQL only)
    statement_timeout_ms: int = 30000

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"

    document_title_max_length: int = 100
    goal_max_length: int = 5000


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
