"""
Angle Backend — Sitemap Service
================================

What:  Builds the XML sitemap (sitemaps.org 0.9) for the public site.
How:   Episodes and categories are fetched concurrently, each on its own
       session, then rendered as <url> entries with escaped text.
Who:   Called by GET /api/sitemap and GET /sitemap.xml.

Entries:
    home                 {SITE_URL}/               today       weekly   1.0
    categories (opt-in)  {SITE_URL}/{slug}         today       daily    0.6
    episodes             {SITE_URL}/episode/{id}   created_at  monthly  0.8

Failure policy:
    category fetch fails → real categories omitted, virtual keywords kept
    episode fetch fails  → document with the home entry only
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Sequence
from xml.sax.saxutils import escape

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from angle.config import settings
from angle.schemas.episode import EpisodeOut
from angle.services.episode_service import EpisodeService, episode_service
from angle.services.slug_service import VIRTUAL_CATEGORIES, category_to_slug

logger = logging.getLogger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str
    priority: str

    def to_xml(self) -> str:
        return (
            "  <url>\n"
            f"    <loc>{escape(self.loc)}</loc>\n"
            f"    <lastmod>{escape(self.lastmod)}</lastmod>\n"
            f"    <changefreq>{self.changefreq}</changefreq>\n"
            f"    <priority>{self.priority}</priority>\n"
            "  </url>"
        )


def format_day(value: datetime) -> str:
    """Calendar day (UTC) of a timestamp as YYYY-MM-DD."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def render_document(entries: Sequence[SitemapEntry]) -> str:
    body = "\n".join(entry.to_xml() for entry in entries)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
        f"{body}\n"
        "</urlset>"
    )


class SitemapService:
    """
    Args:
        site_url: Absolute base of every <loc>; defaults to SITE_URL.
        include_categories: Emit category entries; defaults to
            SITEMAP_INCLUDE_CATEGORIES.
        today: Clock for the home/category lastmod (tests pin it).
    """

    def __init__(
        self,
        episodes: Optional[EpisodeService] = None,
        site_url: Optional[str] = None,
        include_categories: Optional[bool] = None,
        today: Callable[[], date] = lambda: datetime.now(timezone.utc).date(),
    ):
        self.episodes = episodes or episode_service
        self.site_url = (site_url or settings.site_url).rstrip("/")
        self.include_categories = (
            settings.sitemap_include_categories if include_categories is None else include_categories
        )
        self.today = today

    async def generate(self, session_factory: async_sessionmaker) -> str:
        """Always returns a well-formed document; never raises for data failures."""
        episodes_result, categories_result = await asyncio.gather(
            self._with_session(session_factory, self.episodes.list_episodes),
            self._categories(session_factory),
            return_exceptions=True,
        )

        if isinstance(episodes_result, BaseException):
            logger.error("Sitemap episode fetch failed, serving home entry only: %s", episodes_result)
            return render_document([self._home_entry()])

        categories: List[str] = []
        if isinstance(categories_result, BaseException):
            logger.warning("Sitemap category fetch failed, omitting categories: %s", categories_result)
        else:
            categories = categories_result

        return self.build(episodes_result, categories)

    def build(self, episodes: Sequence[EpisodeOut], categories: Sequence[str] = ()) -> str:
        entries = [self._home_entry()]
        if self.include_categories:
            entries.extend(self._category_entries(categories))
        entries.extend(
            SitemapEntry(
                loc=f"{self.site_url}/episode/{episode.id}",
                lastmod=format_day(episode.created_at),
                changefreq="monthly",
                priority="0.8",
            )
            for episode in episodes
        )
        return render_document(entries)

    def _home_entry(self) -> SitemapEntry:
        return SitemapEntry(
            loc=f"{self.site_url}/",
            lastmod=self.today().isoformat(),
            changefreq="weekly",
            priority="1.0",
        )

    def _category_entries(self, categories: Sequence[str]) -> List[SitemapEntry]:
        today = self.today().isoformat()
        slugs: List[str] = list(VIRTUAL_CATEGORIES)
        for label in categories:
            slug = category_to_slug(label)
            if slug and slug not in slugs:
                slugs.append(slug)
        return [
            SitemapEntry(loc=f"{self.site_url}/{slug}", lastmod=today, changefreq="daily", priority="0.6")
            for slug in slugs
        ]

    async def _categories(self, session_factory: async_sessionmaker) -> List[str]:
        if not self.include_categories:
            return []
        return await self._with_session(session_factory, self.episodes.list_categories)

    @staticmethod
    async def _with_session(session_factory: async_sessionmaker, query):
        session: AsyncSession
        async with session_factory() as session:
            return await query(session)


# ── Singleton Instance ────────────────────────────────────────────────────
sitemap_service = SitemapService()
