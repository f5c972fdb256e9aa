"""
Tests for app/core/config.py - Configuration and settings validation.
"""
import pytest

from app.core.config import Settings

SECURE_KEY = "a-very-secure-secret-key-that-is-long-enough-32chars"


def _production_env(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("SECRET_KEY", SECURE_KEY)
    monkeypatch.setenv("ADMIN_API_KEY", "a-unique-admin-key")
    monkeypatch.setenv("SEED_DEMO_USERS", "false")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://hr.example.com")


class TestDefaults:
    """Test default values."""

    def test_development_defaults(self, monkeypatch):
        monkeypatch.delenv("MOCK_API_BASE_URL", raising=False)
        monkeypatch.delenv("ADMIN_API_KEY", raising=False)

        settings = Settings(_env_file=None)

        assert settings.ENVIRONMENT == "development"
        assert settings.MOCK_API_BASE_URL == "http://localhost:8112/api/v1/employee"
        assert settings.ADMIN_API_KEY == "adminSecretKey123"
        assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 60
        assert settings.HTTP_CONNECT_TIMEOUT == 5.0
        assert settings.HTTP_READ_TIMEOUT == 10.0
        assert settings.RETRY_MAX_ATTEMPTS == 2

    def test_base_url_alias_and_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("MOCK_API_URL", "http://remote:9000/api/v1/employee/")

        settings = Settings(_env_file=None)

        assert settings.MOCK_API_BASE_URL == "http://remote:9000/api/v1/employee"

    def test_jwt_secret_alias(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET_KEY", SECURE_KEY)

        assert Settings(_env_file=None).SECRET_KEY == SECURE_KEY

    def test_comma_separated_origins(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, https://b.example.com")

        settings = Settings(_env_file=None)

        assert settings.ALLOWED_ORIGINS == ["https://a.example.com", "https://b.example.com"]


class TestSettingsValidation:
    """Test configuration validation logic."""

    def test_secure_production_configuration(self, monkeypatch):
        _production_env(monkeypatch)

        settings = Settings(_env_file=None)

        assert settings.ENVIRONMENT == "production"

    def test_production_rejects_default_secret_key(self, monkeypatch):
        _production_env(monkeypatch)
        monkeypatch.setenv("SECRET_KEY", "changeme")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "SECRET_KEY is insecure" in str(exc_info.value)

    def test_production_rejects_default_admin_key(self, monkeypatch):
        _production_env(monkeypatch)
        monkeypatch.setenv("ADMIN_API_KEY", "adminSecretKey123")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "ADMIN_API_KEY" in str(exc_info.value)

    def test_production_rejects_demo_users(self, monkeypatch):
        _production_env(monkeypatch)
        monkeypatch.setenv("SEED_DEMO_USERS", "true")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "SEED_DEMO_USERS" in str(exc_info.value)

    def test_production_rejects_debug(self, monkeypatch):
        _production_env(monkeypatch)
        monkeypatch.setenv("DEBUG", "true")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "DEBUG must be False" in str(exc_info.value)

    def test_errors_are_reported_together(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("SECRET_KEY", "changeme")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        message = str(exc_info.value)
        assert "SECRET_KEY" in message
        assert "DEBUG" in message

    def test_invalid_retry_attempts_rejected_everywhere(self, monkeypatch):
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "0")

        with pytest.raises(ValueError) as exc_info:
            Settings(_env_file=None)

        assert "RETRY_MAX_ATTEMPTS" in str(exc_info.value)

    def test_non_positive_timeout_rejected(self, monkeypatch):
        monkeypatch.setenv("HTTP_READ_TIMEOUT", "0")

        with pytest.raises(ValueError):
            Settings(_env_file=None)
