"""
Atrapy dostawców, zegara i wyników dla testów.
"""

from typing import Optional

from nip_registry.models import Address, LookupResult, ResultSource, VatStatus
from nip_registry.providers.base import NIPProvider

# Poprawne sumy kontrolne, spoza listy testowych NIP-ów
MEDIDESK_NIP = "5260250995"
OTHER_NIP = "7272445205"


class FakeClock:
    """Sterowalny zegar dla sesji GUS i TTL cache."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeProvider(NIPProvider):
    """Dostawca z zaprogramowaną odpowiedzią."""

    def __init__(
        self,
        name: str,
        priority: int,
        result: Optional[LookupResult] = None,
        error: Optional[Exception] = None,
        available: bool = True,
    ):
        self._name = name
        self._priority = priority
        self.result = result
        self.error = error
        self.available = available
        self.calls: list[str] = []
        self.availability_calls = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    async def is_available(self) -> bool:
        self.availability_calls += 1
        return self.available

    async def lookup(self, nip: str) -> Optional[LookupResult]:
        self.calls.append(nip)
        if self.error is not None:
            raise self.error
        return self.result

    async def close(self):
        self.closed = True


def make_result(nip: str = MEDIDESK_NIP, **overrides) -> LookupResult:
    data = {
        "nip": nip,
        "name": "MEDIDESK SP. Z O.O.",
        "regon": "012345678",
        "krs": "0000123456",
        "address": Address(street="ul. Prosta 1/2", city="Wrocław", postal_code="50-001"),
        "vat_status": VatStatus.ACTIVE,
        "source": ResultSource.OFFICIAL_REGISTRY,
    }
    data.update(overrides)
    return LookupResult(**data)


