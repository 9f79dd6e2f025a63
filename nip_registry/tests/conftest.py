"""
Wspólne fixtures dla testów NIP Registry.
"""

import pytest

from nip_registry.config import NIPRegistrySettings

from .fakes import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_settings():
    """Ustawienia niezależne od .env i zmiennych środowiskowych testera."""

    def factory(**overrides) -> NIPRegistrySettings:
        values = {
            "environment": "development",
            "gus_api_key": "test-key",
            "gus_use_test": False,
            "enable_vat_whitelist": False,
        }
        values.update(overrides)
        return NIPRegistrySettings(_env_file=None, **values)

    return factory
