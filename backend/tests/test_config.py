"""
Tests for application configuration.
"""

import os
from unittest.mock import patch

import pytest


class TestAppModeEnum:
    def test_app_mode_values(self):
        from config import AppMode

        assert AppMode.DEV.value == "dev"
        assert AppMode.PROD.value == "prod"


class TestSettingsDefaults:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import AppMode, Settings

            settings = Settings(_env_file=None)
            assert settings.APP_MODE == AppMode.DEV
            assert "sqlite" in settings.DATABASE_URL
            assert settings.HOST == "0.0.0.0"
            assert settings.PORT == 8000
            assert settings.DEFAULT_PER_PAGE == 15
            assert settings.ALGORITHM == "HS256"

    def test_env_overrides(self):
        env = {"DEFAULT_PER_PAGE": "25", "LOG_LEVEL": "DEBUG", "PORT": "9000"}
        with patch.dict(os.environ, env, clear=True):
            from config import Settings

            settings = Settings(_env_file=None)
            assert settings.DEFAULT_PER_PAGE == 25
            assert settings.LOG_LEVEL == "DEBUG"
            assert settings.PORT == 9000


class TestDatabaseUrl:
    def test_postgres_url_uses_asyncpg(self):
        env = {"DATABASE_URL": "postgresql://user:pass@db:5432/atelier"}
        with patch.dict(os.environ, env, clear=True):
            from config import Settings

            settings = Settings(_env_file=None)
            assert settings.async_database_url == "postgresql+asyncpg://user:pass@db:5432/atelier"

    def test_sqlite_url_is_unchanged(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import Settings

            settings = Settings(_env_file=None)
            assert settings.async_database_url == settings.DATABASE_URL


class TestCORSOrigins:
    def test_cors_origins_dev_mode(self):
        with patch.dict(os.environ, {"APP_MODE": "dev"}, clear=True):
            from config import Settings

            settings = Settings(_env_file=None)
            assert "http://localhost:3000" in settings.CORS_ORIGINS

    def test_cors_origins_prod_mode_default(self):
        env = {"APP_MODE": "prod", "SECRET_KEY": "x" * 64}
        with patch.dict(os.environ, env, clear=True):
            from config import Settings

            settings = Settings(_env_file=None)
            assert settings.CORS_ORIGINS == []

    def test_cors_allowed_origins_with_spaces(self):
        env = {
            "APP_MODE": "prod",
            "CORS_ALLOWED_ORIGINS": " https://a.example.com , https://b.example.com ",
        }
        with patch.dict(os.environ, env, clear=True):
            from config import Settings

            settings = Settings(_env_file=None)
            assert settings.CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]


class TestProductionSecurityValidation:
    def test_prod_rejects_default_secret(self):
        with patch.dict(os.environ, {"APP_MODE": "prod"}, clear=True):
            from config import Settings, _validate_settings

            with pytest.raises(ValueError, match="Default SECRET_KEY"):
                _validate_settings(Settings(_env_file=None))

    def test_prod_rejects_debug(self):
        env = {"APP_MODE": "prod", "DEBUG": "true", "SECRET_KEY": "x" * 64}
        with patch.dict(os.environ, env, clear=True):
            from config import Settings, _validate_settings

            with pytest.raises(ValueError, match="DEBUG=True"):
                _validate_settings(Settings(_env_file=None))

    def test_prod_warns_on_short_secret(self):
        env = {"APP_MODE": "prod", "SECRET_KEY": "short-but-custom"}
        with patch.dict(os.environ, env, clear=True):
            from config import SecurityWarning, Settings, _validate_settings

            with pytest.warns(SecurityWarning):
                _validate_settings(Settings(_env_file=None))

    def test_dev_accepts_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            from config import Settings, _validate_settings

            settings = Settings(_env_file=None)
            assert _validate_settings(settings) is settings


class TestGetSettings:
    def test_get_settings_is_cached(self):
        from config import get_settings

        assert get_settings() is get_settings()
