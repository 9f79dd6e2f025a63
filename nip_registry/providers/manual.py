"""
Manual fallback - ostatnie ogniwo łańcucha.

Nie korzysta z żadnego zewnętrznego serwisu. Zwraca pusty wynik
do ręcznego uzupełnienia przez użytkownika, o ile NIP ma poprawną sumę
kontrolną.
"""

import logging
from typing import Optional

from ..models import Address, LookupResult, ResultSource
from ..validation import validate_nip
from .base import NIPProvider

logger = logging.getLogger(__name__)

MANUAL_PROVIDER_NAME = "MANUAL_FALLBACK"


class ManualFallbackProvider(NIPProvider):
    """Zawsze dostępny dostawca zwracający wynik do ręcznego uzupełnienia."""

    @property
    def name(self) -> str:
        return MANUAL_PROVIDER_NAME

    @property
    def priority(self) -> int:
        return 99

    async def is_available(self) -> bool:
        return True

    async def lookup(self, nip: str) -> Optional[LookupResult]:
        # Walidujemy ponownie - provider może być użyty bez orkiestratora
        validation = validate_nip(nip)
        if not validation.valid:
            logger.warning("Manual fallback: niepoprawny NIP %s (%s)", nip, validation.reason)
            return None

        logger.info("Manual fallback: zwracam pusty wynik do uzupełnienia dla NIP %s",
                    validation.normalized)

        return LookupResult(
            nip=validation.normalized,
            name=None,
            regon=None,
            krs=None,
            address=Address(),
            vat_status=None,
            source=ResultSource.MANUAL,
            requires_manual_entry=True,
        )
