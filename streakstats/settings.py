from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    github_token: str | None = None
    github_graphql_url: str = "https://api.github.com/graphql"
    github_api_base_url: str = "https://api.github.com"
    utc_offset_minutes: int = Field(default=0, ge=-720, le=840)
    max_history_years: int = Field(default=5, ge=1)
    history_fetch_budget_seconds: float | None = 20.0
    public_events_max_pages: int = Field(default=3, ge=1, le=10)
    cache_max_age_seconds: int = 43200
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    """FastAPI dependency returning settings for the current request."""

    return Settings()
