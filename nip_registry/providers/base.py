"""
Bazowa klasa dostawców danych firm po NIP.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import LookupResult


class NIPProvider(ABC):
    """
    Bazowa klasa dla dostawców danych (GUS, Biała Lista VAT, fallback ręczny).

    Kontrakt:
    - name: identyfikator dostawcy (logi, diagnostyka)
    - priority: kolejność w łańcuchu (mniejsza = wcześniej)
    - is_available(): nigdy nie rzuca wyjątku; błąd = niedostępny
    - lookup(nip): LookupResult, None gdy nie znaleziono,
      wyjątek gdy dostawca zawiódł
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Nazwa dostawcy."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Priorytet w łańcuchu (mniejszy = próbowany wcześniej)."""

    @abstractmethod
    async def is_available(self) -> bool:
        """Czy dostawca jest skonfigurowany i odpowiada."""

    @abstractmethod
    async def lookup(self, nip: str) -> Optional[LookupResult]:
        """
        Wyszukuje firmę po NIP.

        Args:
            nip: NIP znormalizowany (10 cyfr)

        Returns:
            LookupResult lub None jeśli dostawca nie zna tego NIP
        """

    async def close(self):
        """Zwolnij zasoby (klienty HTTP)."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"
