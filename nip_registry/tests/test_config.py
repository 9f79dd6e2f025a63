"""
Testy konfiguracji (pydantic-settings).
"""

import pytest

from nip_registry.config import NIPRegistrySettings

ENV_NAMES = (
    "GUS_API_KEY", "REGON_API_KEY_TOKEN", "BIR1_GUS_API_KEY", "GUS_BIR1_API_KEY",
    "ENVIRONMENT", "NODE_ENV", "GUS_USE_TEST", "GUS_USE_TEST_API",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = NIPRegistrySettings(_env_file=None)

    assert settings.environment == "development"
    assert settings.is_production is False
    assert settings.has_gus_credentials is False
    assert settings.cache_ttl_seconds == 86400
    assert settings.gus_session_ttl_minutes == 55


def test_legacy_env_names(monkeypatch):
    monkeypatch.setenv("REGON_API_KEY_TOKEN", "klucz-gus")
    monkeypatch.setenv("NODE_ENV", "production")

    settings = NIPRegistrySettings(_env_file=None)

    assert settings.gus_api_key == "klucz-gus"
    assert settings.is_production is True


def test_placeholder_key_dropped():
    settings = NIPRegistrySettings(_env_file=None, gus_api_key="your-gus-api-key")

    assert settings.gus_api_key == ""


def test_test_environment_counts_as_credentials():
    settings = NIPRegistrySettings(_env_file=None, gus_api_key="", gus_use_test=True)

    assert settings.has_gus_credentials is True


@pytest.mark.parametrize("value", ["test", "dev", "Local"])
def test_unknown_node_env_is_development(monkeypatch, value):
    monkeypatch.setenv("NODE_ENV", value)

    settings = NIPRegistrySettings(_env_file=None)

    assert settings.environment == "development"
    assert settings.is_production is False


def test_environment_case_insensitive():
    settings = NIPRegistrySettings(_env_file=None, environment="Production")

    assert settings.is_production is True
