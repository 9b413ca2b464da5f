from __future__ import annotations

import pytest

from backend.app.core.config import settings
from backend.app.services.cache import OfflineCache


@pytest.mark.asyncio
async def test_write_merges_keys_last_write_wins(storage) -> None:
    cache = OfflineCache(storage)
    await cache.write({"userId": "u1", "total_score": 10})
    await cache.write({"total_score": 25, "finds": 2})

    assert await cache.read() == {"userId": "u1", "total_score": 25, "finds": 2}


@pytest.mark.asyncio
async def test_missing_cache_reads_empty(storage) -> None:
    assert await OfflineCache(storage).read() == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", "null", "\"text\""])
async def test_corrupt_cache_reads_empty(storage, raw: str) -> None:
    await storage.set_item(settings.cache_key, raw)
    assert await OfflineCache(storage).read() == {}


@pytest.mark.asyncio
async def test_write_over_corrupt_cache_replaces_it(storage) -> None:
    await storage.set_item(settings.cache_key, "{broken")
    cache = OfflineCache(storage)
    await cache.write({"finds": 1})
    assert await cache.read() == {"finds": 1}


@pytest.mark.asyncio
async def test_unserialisable_write_is_dropped(storage) -> None:
    cache = OfflineCache(storage)
    await cache.write({"finds": 1})
    await cache.write({"bad": object()})
    assert await cache.read() == {"finds": 1}


@pytest.mark.asyncio
async def test_clear_removes_blob(storage, memory_redis) -> None:
    cache = OfflineCache(storage)
    await cache.write({"finds": 1})
    await cache.clear()
    assert memory_redis.data == {}
