"""
Testy cache (pamięć procesu i SQLite).
"""

import asyncio

import aiosqlite
import pytest

from nip_registry.core.cache import MemoryCache, SQLiteCache, cache_key


def test_cache_key():
    assert cache_key("5260250995") == "nip:lookup:5260250995"


class TestMemoryCache:
    @pytest.mark.asyncio
    async def test_set_and_get(self, clock):
        cache = MemoryCache(clock=clock)

        await cache.set_with_expiry("k", 60, "v")

        assert await cache.get("k") == "v"
        assert "k" in cache

    @pytest.mark.asyncio
    async def test_expiry(self, clock):
        cache = MemoryCache(clock=clock)
        await cache.set_with_expiry("k", 60, "v")

        clock.advance(59)
        assert await cache.get("k") == "v"

        clock.advance(1)
        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_delete_missing_key(self, clock):
        cache = MemoryCache(clock=clock)

        await cache.delete("missing")

        assert await cache.get("missing") is None


class TestSQLiteCache:
    @pytest.mark.asyncio
    async def test_set_get_delete(self, tmp_path, clock):
        cache = SQLiteCache(str(tmp_path / "sub" / "cache.db"), clock=clock)
        try:
            await cache.set_with_expiry("k", 60, '{"nip": "5260250995"}')
            assert await cache.get("k") == '{"nip": "5260250995"}'

            await cache.set_with_expiry("k", 60, "nowa")
            assert await cache.get("k") == "nowa"

            await cache.delete("k")
            assert await cache.get("k") is None
        finally:
            await cache.close()

    @pytest.mark.asyncio
    async def test_expiry(self, tmp_path, clock):
        cache = SQLiteCache(str(tmp_path / "cache.db"), clock=clock)
        try:
            await cache.set_with_expiry("k", 60, "v")
            clock.advance(60)

            assert await cache.get("k") is None
        finally:
            await cache.close()

    @pytest.mark.asyncio
    async def test_clear_expired(self, tmp_path, clock):
        cache = SQLiteCache(str(tmp_path / "cache.db"), clock=clock)
        try:
            await cache.set_with_expiry("old", 10, "a")
            await cache.set_with_expiry("fresh", 1000, "b")
            clock.advance(100)

            assert await cache.clear_expired() == 1
            assert await cache.get("fresh") == "b"
        finally:
            await cache.close()

    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path, clock):
        path = str(tmp_path / "cache.db")

        cache = SQLiteCache(path, clock=clock)
        await cache.set_with_expiry("k", 60, "v")
        await cache.close()

        reopened = SQLiteCache(path, clock=clock)
        try:
            assert await reopened.get("k") == "v"
        finally:
            await reopened.close()

    @pytest.mark.asyncio
    async def test_concurrent_first_use_opens_one_connection(self, tmp_path, clock, monkeypatch):
        connects = []
        original_connect = aiosqlite.connect

        def counting_connect(*args, **kwargs):
            connects.append(args)
            return original_connect(*args, **kwargs)

        monkeypatch.setattr(aiosqlite, "connect", counting_connect)
        cache = SQLiteCache(str(tmp_path / "cache.db"), clock=clock)
        try:
            results = await asyncio.gather(cache.get("a"), cache.get("b"), cache.get("c"))

            assert results == [None, None, None]
            assert len(connects) == 1
        finally:
            await cache.close()
