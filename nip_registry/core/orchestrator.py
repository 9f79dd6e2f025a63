"""
NIP Lookup Service - koordynator łańcucha dostawców.

Przepływ:
1. Walidacja NIP (format + suma kontrolna)
2. Blokada testowych NIP-ów na produkcji
3. Cache
4. Dostawcy wg priorytetu (GUS -> Biała Lista VAT -> manual fallback)
5. Zapis do cache (poza wynikami do ręcznego uzupełnienia)
"""

import logging
from typing import Iterable, Optional

from ..config import NIPRegistrySettings, get_settings
from ..exceptions import InvalidNIPError, NIPNotFoundError, TestNIPNotAllowedError
from ..models import LookupResult, ProviderStatus, ValidationResult
from ..providers.base import NIPProvider
from ..providers.gus_bir import GUSBirProvider
from ..providers.manual import MANUAL_PROVIDER_NAME, ManualFallbackProvider
from ..providers.vat_whitelist import VatWhitelistProvider
from ..validation import is_test_nip, normalize_nip, validate_nip
from .cache import CacheBackend, MemoryCache, SQLiteCache, cache_key

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 24 * 60 * 60


class NIPLookupService:
    """
    Wyszukiwanie danych firmy po NIP przez łańcuch dostawców.

    Pierwszy dostawca, który zwróci wynik, wygrywa - wyniki nie są łączone.
    Błąd pojedynczego dostawcy nie przerywa łańcucha; jeśli nikt nie zwrócił
    wyniku, rzucany jest ostatni zarejestrowany błąd.
    """

    def __init__(
        self,
        providers: Iterable[NIPProvider],
        cache: Optional[CacheBackend] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        production: bool = False,
    ):
        self.providers = sorted(providers, key=lambda p: p.priority)
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.production = production

    async def __aenter__(self) -> "NIPLookupService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Zamknij dostawców i cache."""
        for provider in self.providers:
            await provider.close()
        if self.cache is not None:
            await self.cache.close()

    async def lookup(
        self,
        nip: str,
        skip_cache: bool = False,
        allow_manual: bool = True,
    ) -> LookupResult:
        """
        Wyszukuje dane firmy po NIP.

        Args:
            nip: NIP w dowolnym formacie (spacje, myślniki, kropki)
            skip_cache: Pomiń odczyt z cache
            allow_manual: Dopuść wynik do ręcznego uzupełnienia

        Returns:
            LookupResult

        Raises:
            InvalidNIPError: niepoprawny format / suma kontrolna
            TestNIPNotAllowedError: testowy NIP na produkcji
            NIPNotFoundError: żaden dostawca nie znalazł NIP
            ProviderError: ostatni błąd dostawcy, gdy żaden nie zwrócił wyniku
        """
        validation = validate_nip(nip)
        if not validation.valid:
            raise InvalidNIPError(validation.reason)

        normalized = validation.normalized

        if self.production and is_test_nip(normalized):
            raise TestNIPNotAllowedError("Test NIP not allowed in production")

        if not skip_cache and self.cache is not None:
            cached = await self._get_from_cache(normalized)
            if cached is not None:
                logger.debug("NIP lookup: cache HIT dla %s", normalized)
                return cached
            logger.debug("NIP lookup: cache MISS dla %s", normalized)

        last_error: Optional[Exception] = None

        for provider in self.providers:
            if not allow_manual and provider.name == MANUAL_PROVIDER_NAME:
                continue

            try:
                if not await provider.is_available():
                    logger.debug("NIP lookup: dostawca %s niedostępny", provider.name)
                    continue

                logger.debug("NIP lookup: próbuję %s dla %s", provider.name, normalized)
                result = await provider.lookup(normalized)
            except Exception as e:
                logger.warning(
                    "NIP lookup: dostawca %s zawiódł dla %s: %s", provider.name, normalized, e
                )
                last_error = e
                continue

            if result is None:
                continue

            if not result.requires_manual_entry:
                await self._set_cache(normalized, result)

            logger.info(
                "NIP lookup: sukces NIP=%s, dostawca=%s, manual=%s",
                normalized, provider.name, result.requires_manual_entry,
            )
            return result

        logger.error("NIP lookup: wszyscy dostawcy zawiedli dla %s", normalized)

        if last_error is not None:
            raise last_error

        raise NIPNotFoundError("NIP not found in any provider")

    def validate(self, nip: str) -> ValidationResult:
        """Tylko walidacja NIP (bez wyszukiwania)."""
        return validate_nip(nip)

    def normalize(self, nip: str) -> str:
        return normalize_nip(nip)

    async def clear_cache(self, nip: str):
        """Usuwa wpis cache dla NIP (np. po ręcznej korekcie danych firmy)."""
        if self.cache is None:
            return

        key = cache_key(normalize_nip(nip))
        await self.cache.delete(key)
        logger.info("Cache DELETE: %s", key)

    async def get_provider_status(self) -> list[ProviderStatus]:
        """Stan wszystkich dostawców - tylko do diagnostyki."""
        status = []
        for provider in self.providers:
            status.append(
                ProviderStatus(
                    name=provider.name,
                    priority=provider.priority,
                    available=await provider.is_available(),
                )
            )
        return status

    async def _get_from_cache(self, nip: str) -> Optional[LookupResult]:
        try:
            cached = await self.cache.get(cache_key(nip))
            return LookupResult.from_json(cached) if cached else None
        except Exception as e:
            logger.warning("NIP cache: błąd odczytu dla %s: %s", nip, e)
            return None

    async def _set_cache(self, nip: str, result: LookupResult):
        if self.cache is None:
            return

        try:
            await self.cache.set_with_expiry(cache_key(nip), self.cache_ttl, result.to_json())
        except Exception as e:
            logger.warning("NIP cache: błąd zapisu dla %s: %s", nip, e)


def build_cache(settings: NIPRegistrySettings) -> Optional[CacheBackend]:
    """Tworzy backend cache wg ustawień."""
    if not settings.enable_cache:
        return None
    if settings.cache_backend == "sqlite":
        return SQLiteCache(settings.cache_db_path)
    return MemoryCache()


def build_providers(settings: NIPRegistrySettings) -> list[NIPProvider]:
    """Lista dostawców wg ustawień; manual fallback jest zawsze na końcu."""
    providers: list[NIPProvider] = []
    if settings.enable_gus:
        providers.append(GUSBirProvider(settings))
    if settings.enable_vat_whitelist:
        providers.append(VatWhitelistProvider(settings))
    providers.append(ManualFallbackProvider())
    return providers


def build_lookup_service(
    settings: Optional[NIPRegistrySettings] = None,
    cache: Optional[CacheBackend] = None,
) -> NIPLookupService:
    """
    Składa NIPLookupService z ustawień.

    Serwis nie jest singletonem - wywołujący trzyma instancję
    (np. w lifespan aplikacji) i przekazuje ją dalej.
    """
    settings = settings or get_settings()
    return NIPLookupService(
        providers=build_providers(settings),
        cache=cache if cache is not None else build_cache(settings),
        cache_ttl=settings.cache_ttl_seconds,
        production=settings.is_production,
    )
