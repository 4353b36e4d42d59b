"""
Tests for application configuration and settings validation.
"""

import os
import pytest
from unittest.mock import patch

from admonitor.config import ConfigurationError, Settings, get_settings


def test_settings_loads_defaults():
    """Settings should load with sensible defaults in development."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "ENVIRONMENT": "development",
        "DATABASE_URL": "postgresql+asyncpg://localhost/test",
        "SECRET_KEY": "change-me-in-production",
        "APP_MODE": "simulation",
    }, clear=False):
        get_settings.cache_clear()
        settings = get_settings()
        assert settings.environment == "development"
        assert settings.is_production is False
        assert settings.is_simulation is True
        assert settings.fb_api_version == "v18.0"
        assert settings.access_token_expire_days == 7
    get_settings.cache_clear()


def test_plain_postgres_url_gets_asyncpg_driver():
    settings = Settings(database_url="postgresql://user:pw@db.example.com/monitor")
    assert settings.database_url == "postgresql+asyncpg://user:pw@db.example.com/monitor"


def test_settings_cors_origin_list():
    """CORS origins string should be split into a list."""
    settings = Settings(cors_origins="http://localhost:3000, http://example.com,")
    assert settings.cors_origin_list == ["http://localhost:3000", "http://example.com"]


def test_app_mode_must_be_known():
    with pytest.raises(ValueError, match="APP_MODE"):
        Settings(app_mode="sandbox")


def test_live_mode_is_case_insensitive():
    assert Settings(app_mode="LIVE").is_simulation is False


def test_require_business_id_in_live_mode():
    settings = Settings(app_mode="live", fb_business_id="")
    with pytest.raises(ConfigurationError, match="FB_BUSINESS_ID"):
        settings.require_business_id()
    assert Settings(app_mode="live", fb_business_id="987").require_business_id() == "987"


def test_require_access_token_in_live_mode():
    with pytest.raises(ConfigurationError, match="FB_ACCESS_TOKEN"):
        Settings(app_mode="live").require_access_token()


def test_production_rejects_default_secret():
    """Production mode should reject the default secret key."""
    with pytest.raises(ValueError, match="SECRET_KEY must be set"):
        Settings(
            environment="production",
            secret_key="change-me-in-production",
            database_url="postgresql+asyncpg://prod-host/db",
        )


def test_production_accepts_real_secret():
    """Production mode should accept a real secret key."""
    settings = Settings(
        environment="production",
        secret_key="a-real-secret-key-that-is-not-the-default",
        database_url="postgresql+asyncpg://prod-host/db",
    )
    assert settings.is_production is True
