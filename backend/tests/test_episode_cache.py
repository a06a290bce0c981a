"""
Angle Backend — Episode Cache Unit Tests
=========================================

What we test:
    ✅ Reads inside the TTL reuse the snapshot
    ✅ Expiry triggers a refresh measured from the last successful fetch
    ✅ A failed refresh propagates and keeps the old snapshot unserved
    ✅ invalidate() forces a refresh
"""

import pytest
from unittest.mock import AsyncMock

from angle.services.episode_cache import EpisodeCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestEpisodeCache:

    def setup_method(self):
        self.clock = FakeClock()
        self.cache = EpisodeCache(ttl=300, clock=self.clock)

    @pytest.mark.asyncio
    async def test_fresh_snapshot_is_reused(self):
        fetch = AsyncMock(return_value=["a", "b"])

        first = await self.cache.get(fetch)
        self.clock.now += 299
        second = await self.cache.get(fetch)

        assert list(first) == ["a", "b"]
        assert second is first
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_expired_snapshot_is_refreshed(self):
        fetch = AsyncMock(side_effect=[["old"], ["new"]])

        await self.cache.get(fetch)
        self.clock.now += 300
        result = await self.cache.get(fetch)

        assert list(result) == ["new"]
        assert self.cache.snapshot.fetched_at == self.clock.now

    @pytest.mark.asyncio
    async def test_failed_refresh_propagates_and_keeps_snapshot(self):
        await self.cache.get(AsyncMock(return_value=["old"]))
        before = self.cache.snapshot
        self.clock.now += 301

        with pytest.raises(RuntimeError):
            await self.cache.get(AsyncMock(side_effect=RuntimeError("db down")))

        assert self.cache.snapshot is before
        assert not self.cache.is_fresh()

        # next call fetches again rather than serving the stale list
        result = await self.cache.get(AsyncMock(return_value=["recovered"]))
        assert list(result) == ["recovered"]

    @pytest.mark.asyncio
    async def test_invalidate(self):
        fetch = AsyncMock(side_effect=[["one"], ["two"]])
        await self.cache.get(fetch)

        self.cache.invalidate()

        assert self.cache.snapshot is None
        assert list(await self.cache.get(fetch)) == ["two"]
