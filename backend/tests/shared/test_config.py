"""Tests for shared/config.py."""

import os
from unittest.mock import patch

from shared.config import Settings, get_settings


class TestSettings:
    def test_default_values(self):
        """Settings should have sensible defaults."""
        settings = Settings(_env_file=None)
        assert settings.app_name == "Mbotix Prompt Generate"
        assert settings.debug is False
        assert settings.free_daily_prompt_limit == 2
        assert settings.verification_code_ttl_minutes == 10
        assert settings.maintenance_time == "00:00"
        assert settings.expiring_soon_days == 3
        assert settings.user_store_backend == "supabase"

    def test_loads_from_env(self):
        """Settings should load from environment variables."""
        with patch.dict(os.environ, {"DEBUG": "true", "FREE_DAILY_PROMPT_LIMIT": "5"}):
            settings = Settings(_env_file=None)
            assert settings.debug is True
            assert settings.free_daily_prompt_limit == 5

    def test_loads_notification_settings_from_env(self):
        with patch.dict(os.environ, {
            "TELEGRAM_ENABLED": "true",
            "TELEGRAM_TOKEN": "bot-token",
            "TELEGRAM_CHAT_ID": "42",
            "EMAIL_HOST": "smtp.example.com",
            "EMAIL_PORT": "465",
        }):
            settings = Settings(_env_file=None)
            assert settings.telegram_enabled is True
            assert settings.telegram_token == "bot-token"
            assert settings.email_port == 465

    def test_loads_supabase_config_from_env(self):
        """Settings should load Supabase configuration from environment variables."""
        with patch.dict(os.environ, {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "test-service-key",
        }):
            settings = Settings(_env_file=None)
            assert settings.supabase_url == "https://test.supabase.co"
            assert settings.supabase_service_role_key == "test-service-key"


class TestNotificationConfig:
    def test_maps_channel_settings(self):
        settings = Settings(
            _env_file=None,
            notifications_enabled=True,
            email_notifications_enabled=True,
            email_host="smtp.example.com",
            email_user="admin@example.com",
            email_pass="secret",
        )
        config = settings.notification_config()

        assert config.enabled is True
        assert config.email_enabled is True
        assert config.email_password == "secret"
        assert config.email_configured is True
        assert config.app_name == "Mbotix Prompt Generate"

    def test_normalizes_production_environment(self):
        settings = Settings(_env_file=None, app_environment="Prod")
        assert settings.notification_config().environment == "production"

    def test_keeps_other_environments(self):
        settings = Settings(_env_file=None, app_environment="staging")
        assert settings.notification_config().environment == "staging"


class TestGetSettings:
    def test_get_settings_returns_settings_instance(self):
        """get_settings should return a Settings instance."""
        get_settings.cache_clear()
        settings = get_settings()
        assert isinstance(settings, Settings)

    def test_get_settings_caches(self):
        """get_settings should return cached instance."""
        get_settings.cache_clear()
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2
