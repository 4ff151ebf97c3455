"""Tests for application settings."""

from config.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("SCL90_COLLECTION", raising=False)

    settings = Settings(_env_file=None)

    assert settings.scl90_collection == "scl90"
    assert settings.log_format == "console"
    assert settings.is_production is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("ARANGO_DATABASE", "clinica_test")

    settings = Settings(_env_file=None)

    assert settings.is_production is True
    assert settings.arango_database == "clinica_test"


def test_safe_config_redacts_password():
    settings = Settings(_env_file=None, arango_password="secret")

    assert settings.get_safe_config_dict()["arango_password"] == "***REDACTED***"
