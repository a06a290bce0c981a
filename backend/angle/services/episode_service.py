"""
Angle Backend — Episode Service (Data Access Layer)
====================================================

What:  Read-only queries against the hosted `episodes` table.
How:   Async SQLAlchemy selects, always filtered to status = 'completed',
       mapped to EpisodeOut. Driver/query failures are wrapped in
       UpstreamError; "not found" is a None return, never an exception.
Who:   Called by the JSON routes, the page renderer, the preview-image
       routes and the sitemap service.

Operations:
    list_episodes(db)                 → completed episodes, newest first
    get_episode(db, id)               → one completed episode or None
    list_categories(db)               → distinct non-null labels, sorted
    most_recent_in_category(db, cat)  → newest completed episode in a category
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from angle.config import settings
from angle.exceptions import UpstreamError
from angle.models.episode import STATUS_COMPLETED, Episode
from angle.schemas.episode import EpisodeOut
from angle.services.episode_cache import EpisodeCache

logger = logging.getLogger(__name__)


class EpisodeService:
    """
    Data access for episodes and the categories derived from them.

    Args:
        cache: Optional EpisodeCache placed in front of list_episodes.
    """

    def __init__(self, cache: Optional[EpisodeCache] = None):
        self.cache = cache

    async def list_episodes(self, db: AsyncSession) -> List[EpisodeOut]:
        """
        All completed episodes ordered by created_at descending.

        Raises:
            UpstreamError: the query failed. No partial result is returned.
        """
        if self.cache is not None:
            return list(await self.cache.get(lambda: self._fetch_episodes(db)))
        return await self._fetch_episodes(db)

    async def _fetch_episodes(self, db: AsyncSession) -> List[EpisodeOut]:
        try:
            result = await db.execute(
                select(Episode)
                .where(Episode.status == STATUS_COMPLETED)
                .order_by(desc(Episode.created_at))
            )
            rows = result.scalars().all()
        except Exception as e:
            logger.error("Error fetching episodes: %s", str(e), exc_info=True)
            raise UpstreamError(
                message="Failed to fetch episodes",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        return [EpisodeOut.from_row(row) for row in rows]

    async def get_episode(self, db: AsyncSession, episode_id: str) -> Optional[EpisodeOut]:
        """
        The completed episode with the given id, or None.

        Query plan:
            SELECT * FROM episodes WHERE id = :id AND status = 'completed'
        """
        try:
            result = await db.execute(
                select(Episode).where(
                    Episode.id == episode_id,
                    Episode.status == STATUS_COMPLETED,
                )
            )
            row = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Error fetching episode %s: %s", episode_id, str(e), exc_info=True)
            raise UpstreamError(
                message="Failed to fetch episode",
                context={"episode_id": episode_id, "error_type": type(e).__name__, "error": str(e)},
            ) from e

        if row is None:
            logger.debug("Episode %s not found or not completed", episode_id)
            return None
        return EpisodeOut.from_row(row)

    async def list_categories(self, db: AsyncSession) -> List[str]:
        """
        Distinct, non-null category labels of completed episodes.

        Sorted with Python's ordinal string ordering so the result does not
        depend on the database collation.
        """
        try:
            result = await db.execute(
                select(Episode.category)
                .where(
                    Episode.status == STATUS_COMPLETED,
                    Episode.category.is_not(None),
                )
                .distinct()
            )
            labels = result.scalars().all()
        except Exception as e:
            logger.error("Error fetching categories: %s", str(e), exc_info=True)
            raise UpstreamError(
                message="Failed to fetch categories",
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        return sorted({label for label in labels if label is not None})

    async def most_recent_in_category(
        self, db: AsyncSession, category: Optional[str]
    ) -> Optional[EpisodeOut]:
        """
        Newest completed episode whose category equals `category`.

        Passing None returns the newest completed episode of any category.
        """
        query = select(Episode).where(Episode.status == STATUS_COMPLETED)
        if category is not None:
            query = query.where(Episode.category == category)
        query = query.order_by(desc(Episode.created_at)).limit(1)

        try:
            result = await db.execute(query)
            row = result.scalars().first()
        except Exception as e:
            logger.error("Error fetching latest episode for %s: %s", category, str(e), exc_info=True)
            raise UpstreamError(
                message="Failed to fetch episode",
                context={"category": category, "error_type": type(e).__name__, "error": str(e)},
            ) from e

        return EpisodeOut.from_row(row) if row is not None else None


def build_episode_service() -> EpisodeService:
    """EpisodeService configured from settings (cache on or off)."""
    cache = EpisodeCache(ttl=settings.episode_cache_ttl) if settings.episode_cache_enabled else None
    if cache is not None:
        logger.info("Episode cache enabled (ttl=%ds)", settings.episode_cache_ttl)
    return EpisodeService(cache=cache)


# ── Singleton Instance ────────────────────────────────────────────────────
episode_service = build_episode_service()
