"""
Testy manual fallback.
"""

import pytest

from nip_registry.models import Address, ResultSource
from nip_registry.providers.manual import MANUAL_PROVIDER_NAME, ManualFallbackProvider


class TestManualFallbackProvider:
    def test_identity(self):
        provider = ManualFallbackProvider()

        assert provider.name == MANUAL_PROVIDER_NAME == "MANUAL_FALLBACK"
        assert provider.priority == 99

    @pytest.mark.asyncio
    async def test_always_available(self):
        assert await ManualFallbackProvider().is_available() is True

    @pytest.mark.asyncio
    async def test_returns_placeholder(self):
        result = await ManualFallbackProvider().lookup("526-025-09-95")

        assert result.nip == "5260250995"
        assert result.requires_manual_entry is True
        assert result.source == ResultSource.MANUAL
        assert result.name is None and result.regon is None and result.krs is None
        assert result.vat_status is None
        assert result.address == Address()

    @pytest.mark.asyncio
    async def test_invalid_nip_returns_none(self):
        assert await ManualFallbackProvider().lookup("7272445206") is None
