"""
Angle Backend — Preview Image Route Handlers
=============================================

What:  PNG previews referenced by og:image / twitter:image.
How:   Episode and category images degrade to the default image on any
       data, download or rendering failure; only a missing or blank identifier (400)
       or a failure of the default image itself (500) reach the client
       as errors.

Caching:
    default image, category image, degraded fallbacks   public, max-age=3600
    rendered episode image                              public, max-age=31536000, immutable
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from angle.database import get_db_session
from angle.exceptions import ImageRenderError, InvalidInputError
from angle.schemas.episode import EpisodeOut, ErrorResponse
from angle.services.episode_service import episode_service
from angle.services.og_image_service import og_image_service
from angle.services.page_renderer import base_url_from_headers
from angle.services.slug_service import SlugResolution, slug_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/og-image", tags=["Preview Images"])

CACHE_SHORT = "public, max-age=3600"
CACHE_IMMUTABLE = "public, max-age=31536000, immutable"

_PNG_RESPONSES = {
    200: {"content": {"image/png": {}}, "description": "1200×630 PNG"},
    500: {"description": "Default image could not be rendered", "model": ErrorResponse},
}


def _png(content: bytes, cache_control: str) -> Response:
    return Response(content=content, media_type="image/png", headers={"Cache-Control": cache_control})


async def _default_image() -> Response:
    try:
        content = await og_image_service.render_default()
    except Exception as e:
        logger.error("Default preview image failed: %s", str(e), exc_info=True)
        raise ImageRenderError(context={"error_type": type(e).__name__, "error": str(e)}) from e
    return _png(content, CACHE_SHORT)


@router.get("", response_class=Response, responses=_PNG_RESPONSES, summary="Default preview image")
async def default_image() -> Response:
    return await _default_image()


@router.get("/category", responses=_PNG_RESPONSES, include_in_schema=False)
async def category_image_missing() -> Response:
    raise InvalidInputError(message="Category is required", field="category")


@router.get(
    "/category/{category}",
    response_class=Response,
    responses=_PNG_RESPONSES,
    summary="Category preview image",
)
async def category_image(
    category: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    if not category.strip():
        raise InvalidInputError(message="Category is required", field="category")

    base_url = base_url_from_headers(request.headers)
    try:
        resolution = await slug_resolver.resolve(db, category)
        if resolution.is_valid:
            episode = await _category_source(db, resolution)
            content = await og_image_service.render_category(
                resolution.label, resolution.description, episode, base_url
            )
            return _png(content, CACHE_SHORT)
        logger.info("Unknown category %r for preview image, serving default", category)
    except Exception as e:
        logger.warning("Category preview image for %r failed: %s", category, str(e), exc_info=True)

    return await _default_image()


@router.get(
    "/{episode_id}",
    response_class=Response,
    responses=_PNG_RESPONSES,
    summary="Episode preview image",
)
async def episode_image(
    episode_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    episode_id = episode_id.strip()
    if not episode_id:
        raise InvalidInputError(message="Episode ID is required", field="id")

    base_url = base_url_from_headers(request.headers)
    try:
        episode = await episode_service.get_episode(db, episode_id)
        if episode is not None:
            content = await og_image_service.render_episode(episode, base_url)
            return _png(content, CACHE_IMMUTABLE)
        logger.info("No completed episode %s for preview image, serving default", episode_id)
    except Exception as e:
        logger.warning("Episode preview image for %s failed: %s", episode_id, str(e), exc_info=True)

    return await _default_image()


async def _category_source(db: AsyncSession, resolution: SlugResolution) -> Optional[EpisodeOut]:
    """
    Episode whose cover backs a category image.

    new      → newest completed episode of any category
    popular  → none (no popularity data exists)
    label    → newest completed episode with that category
    """
    if resolution.slug == "popular":
        return None
    if resolution.slug == "new":
        return await episode_service.most_recent_in_category(db, None)
    return await episode_service.most_recent_in_category(db, resolution.label)
