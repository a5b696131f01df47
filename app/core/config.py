"""
Application configuration.
Values come from environment variables or a local .env file.
"""
import os
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    JWT_SECRET_KEY: str = os.environ.get("JWT_SECRET_KEY", "")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    DATABASE_URL: str

    # Chat-bot
    BOT_TOKEN: str = ""
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    WEB_APP_URL: str = ""
    DEV_TELEGRAM_ID: str = "123456789"

    # Booking grid
    SLOT_STEP_MINUTES: int = 15
    DEFAULT_GAP_MINUTES: int = 15

    # Notification outbox
    NOTIFICATION_WORKER_ENABLED: bool = True
    NOTIFICATION_POLL_SECONDS: int = 30
    REMINDERS_ENABLED: bool = True

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"


settings = Settings()

# Validate critical security settings
if not settings.JWT_SECRET_KEY:
    raise ValueError(
        "JWT_SECRET_KEY is not set. Export it as an environment variable or put it in .env. "
        "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )

if not settings.BOT_TOKEN:
    logger.warning("BOT_TOKEN is not set; chat-bot login and notifications are disabled.")
