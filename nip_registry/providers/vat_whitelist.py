"""
Biała Lista VAT (Ministerstwo Finansów) jako dostawca danych firmy.

API: https://wl-api.mf.gov.pl/
Nie wymaga klucza. Zwraca nazwę, REGON, KRS, adres i status VAT podatnika.
"""

import logging
import re
from datetime import date
from typing import Optional

import httpx

from ..config import NIPRegistrySettings, get_settings
from ..exceptions import VatWhitelistProviderError
from ..models import Address, LookupResult, ResultSource, VatStatus
from .base import NIPProvider

logger = logging.getLogger(__name__)

# statusVat: "Czynny" - aktywny, "Zwolniony", "Niezarejestrowany"
_VAT_STATUS_MAP = {
    "Czynny": VatStatus.ACTIVE,
    "Zwolniony": VatStatus.EXEMPT,
}

# "UL. PROSTA 1/2, 00-001 WARSZAWA"
_ADDRESS_PATTERN = re.compile(r"^(?P<street>.*?),\s*(?P<postal>\d{2}-\d{3})\s+(?P<city>.+)$")


def parse_whitelist_address(raw: Optional[str]) -> Address:
    """Rozbija adres z Białej Listy na ulicę, kod pocztowy i miasto."""
    if not raw or not raw.strip():
        return Address()

    match = _ADDRESS_PATTERN.match(raw.strip())
    if not match:
        return Address(street=raw.strip())

    return Address(
        street=match.group("street").strip() or None,
        postal_code=match.group("postal"),
        city=match.group("city").strip(),
    )


def map_whitelist_status(status: Optional[str]) -> Optional[VatStatus]:
    if not status:
        return None
    return _VAT_STATUS_MAP.get(status, VatStatus.INACTIVE)


class VatWhitelistProvider(NIPProvider):
    """Dostawca oparty o API Białej Listy VAT."""

    def __init__(
        self,
        settings: Optional[NIPRegistrySettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def name(self) -> str:
        return "VAT_WHITELIST"

    @property
    def priority(self) -> int:
        return 50

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazy init HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.vat_whitelist_timeout_sec)
        return self._http_client

    async def close(self):
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def is_available(self) -> bool:
        return self.settings.enable_vat_whitelist

    async def lookup(self, nip: str) -> Optional[LookupResult]:
        url = self.settings.vat_whitelist_api_url.format(nip=nip)
        # API wymaga daty sprawdzenia (YYYY-MM-DD)
        params = {"date": date.today().isoformat()}

        logger.debug("Sprawdzam Białą Listę VAT: %s", url)

        try:
            response = await self.http_client.get(url, params=params)
        except httpx.HTTPError as e:
            raise VatWhitelistProviderError(
                f"VAT whitelist request failed: {e}", provider=self.name
            ) from e

        if response.status_code == 404:
            logger.info("NIP %s nie w Białej Liście VAT (404)", nip)
            return None

        if response.status_code != 200:
            raise VatWhitelistProviderError(
                f"VAT whitelist returned HTTP {response.status_code}", provider=self.name
            )

        try:
            data = response.json()
        except ValueError as e:
            raise VatWhitelistProviderError(
                f"VAT whitelist returned invalid JSON: {e}", provider=self.name
            ) from e
        if not isinstance(data, dict):
            raise VatWhitelistProviderError("VAT whitelist returned unexpected payload", provider=self.name)

        # Struktura odpowiedzi: {"result": {"subject": {...}, "requestId": ...}}
        subject = (data.get("result") or {}).get("subject")
        if not subject:
            logger.info("NIP %s nie w Białej Liście VAT", nip)
            return None

        logger.info("Biała Lista VAT: %s, status=%s", subject.get("name"), subject.get("statusVat"))

        return LookupResult(
            nip=nip,
            name=subject.get("name") or None,
            regon=subject.get("regon") or None,
            krs=subject.get("krs") or None,
            address=parse_whitelist_address(
                subject.get("workingAddress") or subject.get("residenceAddress")
            ),
            vat_status=map_whitelist_status(subject.get("statusVat")),
            source=ResultSource.VAT_WHITELIST,
        )
