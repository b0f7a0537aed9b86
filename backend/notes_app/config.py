from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    notes_table: str = "notes"
    profiles_table: str = "profiles"

    # Realtime change feed
    realtime_schema: str = "public"
    realtime_channel: str = "notes-changes"

    # Authentication security settings
    max_login_attempts: int = 5  # Maximum failed login attempts before rate limiting
    login_attempt_window: int = 300  # seconds
    enable_rate_limiting: bool = True


settings = Settings()
