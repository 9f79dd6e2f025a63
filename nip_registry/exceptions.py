"""
Wyjątki zwracane przez NIP Registry.

Każdy wyjątek ma stały kod (`code`), którym wywołujący rozróżnia rodzaj
błędu bez parsowania komunikatu.
"""

from typing import Optional


class NIPLookupError(Exception):
    """Bazowy wyjątek dla błędów wyszukiwania NIP."""

    code = "NIP_LOOKUP_ERROR"


class InvalidNIPError(NIPLookupError):
    """NIP nie przeszedł walidacji formatu lub sumy kontrolnej."""

    code = "INVALID_NIP"


class TestNIPNotAllowedError(NIPLookupError):
    """Testowy NIP użyty w środowisku produkcyjnym."""

    code = "TEST_NIP_NOT_ALLOWED"

    # pytest nie powinien traktować tej klasy jako zestawu testów
    __test__ = False


class NIPNotFoundError(NIPLookupError):
    """Żaden z dostawców nie znalazł podmiotu."""

    code = "NIP_NOT_FOUND"


class ProviderError(NIPLookupError):
    """Błąd komunikacji lub parsowania po stronie dostawcy danych."""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class GUSProviderError(ProviderError):
    """Błąd API GUS BIR (logowanie, wyszukiwanie, raport)."""

    code = "GUS_PROVIDER_ERROR"


class VatWhitelistProviderError(ProviderError):
    """Błąd API Białej Listy VAT."""

    code = "VAT_WHITELIST_PROVIDER_ERROR"
