"""
Testy dostawcy Białej Listy VAT.
"""

import httpx
import pytest

from nip_registry.exceptions import VatWhitelistProviderError
from nip_registry.models import Address, ResultSource, VatStatus
from nip_registry.providers.vat_whitelist import (
    VatWhitelistProvider,
    map_whitelist_status,
    parse_whitelist_address,
)

SUBJECT = {
    "name": "MEDIDESK SPÓŁKA Z OGRANICZONĄ ODPOWIEDZIALNOŚCIĄ",
    "nip": "5260250995",
    "statusVat": "Czynny",
    "regon": "012345678",
    "krs": "0000123456",
    "workingAddress": "UL. PROSTA 1/2, 00-001 WARSZAWA",
    "residenceAddress": None,
}


def make_provider(make_settings, handler) -> VatWhitelistProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VatWhitelistProvider(make_settings(enable_vat_whitelist=True), http_client=client)


class TestHelpers:
    def test_parse_address(self):
        assert parse_whitelist_address("UL. PROSTA 1/2, 00-001 WARSZAWA") == Address(
            street="UL. PROSTA 1/2", postal_code="00-001", city="WARSZAWA"
        )

    def test_parse_unstructured_address(self):
        assert parse_whitelist_address("WARSZAWA") == Address(street="WARSZAWA")

    def test_parse_empty_address(self):
        assert parse_whitelist_address(None) == Address()
        assert parse_whitelist_address("  ") == Address()

    def test_map_status(self):
        assert map_whitelist_status("Czynny") == VatStatus.ACTIVE
        assert map_whitelist_status("Zwolniony") == VatStatus.EXEMPT
        assert map_whitelist_status("Niezarejestrowany") == VatStatus.INACTIVE
        assert map_whitelist_status(None) is None


class TestVatWhitelistProvider:
    def test_identity(self, make_settings):
        provider = VatWhitelistProvider(make_settings())

        assert provider.name == "VAT_WHITELIST"
        assert provider.priority == 50

    @pytest.mark.asyncio
    async def test_availability_follows_settings(self, make_settings):
        assert await VatWhitelistProvider(make_settings()).is_available() is False
        assert await VatWhitelistProvider(make_settings(enable_vat_whitelist=True)).is_available() is True

    @pytest.mark.asyncio
    async def test_lookup(self, make_settings):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"result": {"subject": SUBJECT, "requestId": "abc"}})

        provider = make_provider(make_settings, handler)

        result = await provider.lookup("5260250995")

        assert result.name == SUBJECT["name"]
        assert result.regon == "012345678"
        assert result.krs == "0000123456"
        assert result.address.city == "WARSZAWA"
        assert result.vat_status == VatStatus.ACTIVE
        assert result.source == ResultSource.VAT_WHITELIST
        assert requests[0].url.path == "/api/search/nip/5260250995"
        assert "date" in requests[0].url.params

    @pytest.mark.asyncio
    async def test_residence_address_fallback(self, make_settings):
        subject = dict(SUBJECT, workingAddress=None, residenceAddress="KRÓTKA 5, 30-002 KRAKÓW")
        provider = make_provider(
            make_settings,
            lambda request: httpx.Response(200, json={"result": {"subject": subject}}),
        )

        result = await provider.lookup("5260250995")

        assert result.address.city == "KRAKÓW"
        assert result.address.postal_code == "30-002"

    @pytest.mark.asyncio
    async def test_empty_subject_is_not_found(self, make_settings):
        provider = make_provider(
            make_settings,
            lambda request: httpx.Response(200, json={"result": {"subject": None}}),
        )

        assert await provider.lookup("5260250995") is None

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, make_settings):
        provider = make_provider(make_settings, lambda request: httpx.Response(404))

        assert await provider.lookup("5260250995") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self, make_settings):
        provider = make_provider(make_settings, lambda request: httpx.Response(503))

        with pytest.raises(VatWhitelistProviderError) as exc_info:
            await provider.lookup("5260250995")

        assert exc_info.value.provider == "VAT_WHITELIST"

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, make_settings):
        provider = make_provider(make_settings, lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(VatWhitelistProviderError):
            await provider.lookup("5260250995")
