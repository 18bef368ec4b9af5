"""
Centralized configuration for the prompt generator backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings are namespaced (e.g., SUPABASE_*, EMAIL_*, TELEGRAM_*).
"""

from functools import lru_cache
from typing import Optional, TYPE_CHECKING

from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from modules.notifications.models import NotificationConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Mbotix Prompt Generate"
    app_version: str = "0.1.0"
    app_environment: str = "development"
    debug: bool = False

    # Frontend URLs (for links in emails)
    frontend_url: str = "http://localhost:5173"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    # User store backend: "supabase" or "memory"
    user_store_backend: str = "supabase"

    # Quotas and verification codes
    free_daily_prompt_limit: int = 2
    verification_code_ttl_minutes: int = 10

    # Daily maintenance
    enable_scheduler: bool = True
    maintenance_time: str = "00:00"  # HH:MM, wall clock
    maintenance_timezone: str = "UTC"
    expiring_soon_days: int = 3

    # Notifications
    notifications_enabled: bool = False
    telegram_enabled: bool = False
    telegram_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    email_notifications_enabled: bool = False
    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    email_from: Optional[str] = None

    def notification_config(self) -> "NotificationConfig":
        """
        Build the notification dispatcher configuration.

        Called once at startup; the dispatcher never reads settings again.
        """
        from modules.notifications.models import NotificationConfig

        environment = self.app_environment.strip().lower()
        if "prod" in environment:
            environment = "production"

        return NotificationConfig(
            enabled=self.notifications_enabled,
            environment=environment or "development",
            app_name=self.app_name,
            telegram_enabled=self.telegram_enabled,
            telegram_token=self.telegram_token,
            telegram_chat_id=self.telegram_chat_id,
            email_enabled=self.email_notifications_enabled,
            email_host=self.email_host,
            email_port=self.email_port,
            email_user=self.email_user,
            email_password=self.email_pass,
            email_from=self.email_from,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
