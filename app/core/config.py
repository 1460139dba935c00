"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Content API
    CONTENT_API_URL: str = "http://localhost:8000"
    CONTENT_API_TIMEOUT: float = 10.0

    # Popup engine
    POPUP_SETTLE_DELAY_MS: int = 500
    POPUP_COOKIE_NAME: str = "popup_seen"
    POPUP_TTL_HOURS: int = 8
    NOTICE_MAX_AGE_DAYS: int = 5

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()
