"""
Angle Backend — Episode List Cache
===================================

What:  Single-entry, fixed-TTL in-process cache for the completed-episode list.
How:   Holds one immutable snapshot (episodes, fetched_at). A read inside the
       TTL returns the snapshot; a read after it calls the fetcher and swaps in
       a new snapshot. The TTL is measured from the last successful fetch.
Who:   Wrapped around EpisodeService.list_episodes when
       EPISODE_CACHE_ENABLED=true.

Failure semantics:
    A failed refresh propagates to the caller and leaves the previous snapshot
    in place. The stale snapshot is not served; the next call fetches again.

Concurrency:
    Callers arriving during a refresh are not deduplicated; each may run its
    own fetch. Reads are idempotent, so the last completed fetch wins.
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from angle.schemas.episode import EpisodeOut

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSnapshot:
    episodes: Sequence[EpisodeOut]
    fetched_at: float


class EpisodeCache:
    """
    Owns the cached episode snapshot.

    Args:
        ttl:   Snapshot lifetime in seconds.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(self, ttl: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._snapshot: Optional[CacheSnapshot] = None

    @property
    def snapshot(self) -> Optional[CacheSnapshot]:
        return self._snapshot

    def is_fresh(self) -> bool:
        snapshot = self._snapshot
        return snapshot is not None and (self._clock() - snapshot.fetched_at) < self.ttl

    async def get(
        self, fetch: Callable[[], Awaitable[Sequence[EpisodeOut]]]
    ) -> Sequence[EpisodeOut]:
        """Returns the cached list, refreshing it through `fetch` when expired."""
        if self.is_fresh():
            snapshot = self._snapshot
            logger.debug("Returning cached episodes (%d)", len(snapshot.episodes))
            return snapshot.episodes

        logger.debug("Episode cache expired or empty, fetching fresh episodes")
        episodes = tuple(await fetch())
        # Single assignment: readers see either the old or the new snapshot
        self._snapshot = CacheSnapshot(episodes=episodes, fetched_at=self._clock())
        return episodes

    def invalidate(self) -> None:
        self._snapshot = None
