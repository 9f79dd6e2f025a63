"""
Cache dla wyników wyszukiwania NIP.

Klucz: "nip:lookup:" + NIP znormalizowany
Wartość: LookupResult zserializowany do JSON
TTL: 24h (konfigurowalne)

Backendy:
- MemoryCache - słownik w pamięci procesu (dev, testy)
- SQLiteCache - aiosqlite, przeżywa restart procesu
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

import aiosqlite

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "nip:lookup:"


def cache_key(nip: str) -> str:
    """Klucz cache dla znormalizowanego NIP."""
    return f"{CACHE_KEY_PREFIX}{nip}"


class CacheBackend(ABC):
    """Minimalny kontrakt magazynu klucz-wartość z wygasaniem."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Wartość lub None gdy brak / wygasło."""

    @abstractmethod
    async def set_with_expiry(self, key: str, ttl_seconds: int, value: str):
        """Zapisuje wartość z czasem życia w sekundach."""

    @abstractmethod
    async def delete(self, key: str):
        """Usuwa klucz (brak klucza to nie błąd)."""

    async def close(self):
        """Zamknij połączenie."""


class MemoryCache(CacheBackend):
    """Cache w pamięci procesu."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: str):
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str):
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


class SQLiteCache(CacheBackend):
    """
    Cache w SQLite (aiosqlite).

    Schema:
    - key (PRIMARY KEY)
    - value (JSON)
    - expires_at (unix timestamp)
    """

    def __init__(self, db_path: str, clock: Callable[[], float] = time.time):
        self.db_path = db_path
        self._clock = clock
        self._db: Optional[aiosqlite.Connection] = None
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def _ensure_initialized(self):
        """Lazy initialization - tworzy tabelę jeśli nie istnieje."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return
            await self._connect()

    async def _connect(self):
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS nip_lookup_cache (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                expires_at REAL NOT NULL
            )
        """)
        await self._db.execute("""
            CREATE INDEX IF NOT EXISTS idx_expires_at ON nip_lookup_cache(expires_at)
        """)
        await self._db.commit()

        self._initialized = True
        logger.info("Cache zainicjalizowany: %s", self.db_path)

    async def get(self, key: str) -> Optional[str]:
        await self._ensure_initialized()

        async with self._db.execute(
            "SELECT value, expires_at FROM nip_lookup_cache WHERE key = ?",
            (key,),
        ) as cursor:
            row = await cursor.fetchone()

        if not row:
            return None

        value, expires_at = row
        if self._clock() >= expires_at:
            logger.debug("Cache EXPIRED: %s", key)
            await self.delete(key)
            return None
        return value

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: str):
        await self._ensure_initialized()

        await self._db.execute(
            """
            INSERT OR REPLACE INTO nip_lookup_cache (key, value, expires_at)
            VALUES (?, ?, ?)
            """,
            (key, value, self._clock() + ttl_seconds),
        )
        await self._db.commit()

    async def delete(self, key: str):
        await self._ensure_initialized()

        await self._db.execute("DELETE FROM nip_lookup_cache WHERE key = ?", (key,))
        await self._db.commit()

    async def clear_expired(self) -> int:
        """Usuwa wygasłe wpisy, zwraca liczbę usuniętych."""
        await self._ensure_initialized()

        cursor = await self._db.execute(
            "DELETE FROM nip_lookup_cache WHERE expires_at <= ?",
            (self._clock(),),
        )
        await self._db.commit()

        deleted = cursor.rowcount
        logger.info("Cache cleanup: usunięto %d wygasłych wpisów", deleted)
        return deleted

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            self._initialized = False
            logger.info("Cache closed")
