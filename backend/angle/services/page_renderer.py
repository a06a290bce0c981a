"""
Angle Backend — Page Renderer (bot-visible HTML)
=================================================

What:  Produces the SPA shell with page-specific Open Graph / Twitter Card
       metadata so crawlers and link unfurlers see real previews without
       running any client-side script.
How:   ShellLoader reads the static index.html (path resolved once);
       SlugResolver / EpisodeService supply the data; MetaTagRewriter
       substitutes the values.
Who:   Called by the HTML routes in angle.routes.render.

Pages:
    home      → site defaults, image /api/og-image
    category  → "{Label} Stories | Angle", image /api/og-image/category/{slug}
    episode   → "{Title} | Angle", image /api/og-image/{id}

Errors:
    NotFoundError            invalid category or absent episode (route → 302 "/")
    RenderUnavailableError   shell unreadable
    UpstreamError            database read failed
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

import aiofiles
from sqlalchemy.ext.asyncio import AsyncSession

from angle.config import settings
from angle.exceptions import NotFoundError, RenderUnavailableError
from angle.services.episode_service import EpisodeService, episode_service
from angle.services.meta_rewriter import MetaTagRewriter, meta_rewriter
from angle.services.slug_service import SlugResolver, slug_resolver

logger = logging.getLogger(__name__)

OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630


def base_url_from_headers(headers: Mapping[str, str], default_host: Optional[str] = None) -> str:
    """
    Scheme and host of the original request, e.g. "https://newsangle.co".

    Protocol: X-Forwarded-Proto, else https when X-Forwarded-SSL is "on",
    else http. Host: Host header, else the configured default host.
    """
    proto = headers.get("x-forwarded-proto")
    if proto:
        proto = proto.split(",")[0].strip()
    else:
        proto = "https" if headers.get("x-forwarded-ssl") == "on" else "http"
    host = headers.get("host") or default_host or settings.default_host
    return f"{proto}://{host}"


class ShellLoader:
    """
    Locates and reads the static HTML shell.

    The first readable candidate is remembered, so probing happens once per
    process. If the remembered file later becomes unreadable, the candidates
    are probed again before giving up.
    """

    def __init__(self, candidates: Optional[Sequence[Path]] = None):
        self._candidates: List[Path] = [Path(p) for p in (candidates or settings.shell_candidates)]
        self._resolved: Optional[Path] = None

    @property
    def resolved_path(self) -> Optional[Path]:
        return self._resolved

    def resolve(self) -> Path:
        """First candidate that is an existing file."""
        for candidate in self._candidates:
            if candidate.is_file():
                if candidate != self._resolved:
                    logger.info("Using HTML shell at %s", candidate)
                self._resolved = candidate
                return candidate
        logger.error("Could not find index.html. Tried paths: %s", [str(p) for p in self._candidates])
        raise RenderUnavailableError(
            message="Could not find index.html",
            context={"tried": [str(p) for p in self._candidates]},
        )

    async def load(self) -> str:
        path = self._resolved or self.resolve()
        try:
            return await self._read(path)
        except OSError as e:
            logger.warning("HTML shell at %s became unreadable: %s", path, str(e))

        self._resolved = None
        path = self.resolve()
        try:
            return await self._read(path)
        except OSError as e:
            raise RenderUnavailableError(
                message="Could not read index.html",
                context={"path": str(path), "os_error": str(e)},
            ) from e

    @staticmethod
    async def _read(path: Path) -> str:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()


class PageRenderer:
    """Builds the meta values for each page type and applies them to the shell."""

    def __init__(
        self,
        shell_loader: Optional[ShellLoader] = None,
        episodes: Optional[EpisodeService] = None,
        resolver: Optional[SlugResolver] = None,
        rewriter: Optional[MetaTagRewriter] = None,
    ):
        self.shell_loader = shell_loader or ShellLoader()
        self.episodes = episodes or episode_service
        self.resolver = resolver or slug_resolver
        self.rewriter = rewriter or meta_rewriter

    async def render_home(self, base_url: str) -> str:
        title = f"{settings.site_name} | {settings.site_tagline}"
        description = settings.site_tagline
        page_url = f"{base_url}/"
        image_url = f"{base_url}/api/og-image"

        html = await self.shell_loader.load()
        return self.rewriter.rewrite(
            html,
            {
                "og:type": "website",
                "og:url": page_url,
                "og:title": title,
                "og:description": description,
                "og:image": image_url,
                "og:image:width": str(OG_IMAGE_WIDTH),
                "og:image:height": str(OG_IMAGE_HEIGHT),
                "twitter:card": "summary_large_image",
                "twitter:url": page_url,
                "twitter:title": title,
                "twitter:description": description,
                "twitter:image": image_url,
            },
            title=title,
        )

    async def render_category(self, db: AsyncSession, segment: str, base_url: str) -> str:
        """
        Category page for a URL segment.

        Raises:
            NotFoundError: the segment is not a category or virtual keyword.
        """
        resolution = await self.resolver.resolve(db, segment)
        if not resolution.is_valid:
            raise NotFoundError(resource="category", resource_id=segment)

        title = f"{resolution.label} Stories | {settings.site_name}"
        description = resolution.description
        page_url = f"{base_url}/{resolution.slug}"
        image_url = f"{base_url}/api/og-image/category/{resolution.slug}"

        html = await self.shell_loader.load()
        logger.debug("Rendering category page %s (%s)", resolution.slug, resolution.label)
        return self.rewriter.rewrite(
            html,
            {
                "og:type": "website",
                "og:url": page_url,
                "og:title": title,
                "og:description": description,
                "og:image": image_url,
                "twitter:card": "summary_large_image",
                "twitter:url": page_url,
                "twitter:title": title,
                "twitter:description": description,
                "twitter:image": image_url,
            },
            title=title,
        )

    async def render_episode(self, db: AsyncSession, episode_id: str, base_url: str) -> str:
        """
        Episode page.

        Raises:
            NotFoundError: no completed episode with this id.
        """
        episode = await self.episodes.get_episode(db, episode_id)
        if episode is None:
            raise NotFoundError(resource="episode", resource_id=episode_id)

        description = episode.full_description or episode.description or settings.site_tagline
        page_url = f"{base_url}/episode/{episode.id}"
        image_url = f"{base_url}/api/og-image/{episode.id}"

        html = await self.shell_loader.load()
        return self.rewriter.rewrite(
            html,
            {
                "og:type": "article",
                "og:url": page_url,
                "og:title": episode.title,
                "og:description": description,
                "og:image": image_url,
                "og:image:width": str(OG_IMAGE_WIDTH),
                "og:image:height": str(OG_IMAGE_HEIGHT),
                "twitter:card": "summary_large_image",
                "twitter:url": page_url,
                "twitter:title": episode.title,
                "twitter:description": description,
                "twitter:image": image_url,
            },
            title=f"{episode.title} | {settings.site_name}",
        )


# ── Singleton Instance ────────────────────────────────────────────────────
page_renderer = PageRenderer()
