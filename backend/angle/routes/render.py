"""
Angle Backend — Bot-Visible Page Routes
========================================

What:  Serves the SPA shell with page-specific meta tags for /, /{category}
       and /episode/{id}, plus the /api/render/... paths that edge rewrites
       point at.
How:   PageRenderer produces the HTML; this module maps its outcomes to
       HTTP responses.

Outcomes:
    rendered                     200 text/html
    blank identifier             400 text/plain
    reserved first segment       404 text/plain "Not Found"
    NotFoundError                302 → "/"
    anything else, development   500 JSON {error, stack, url, query}
    anything else, otherwise     302 → "/" (home: 500 envelope)

This router declares a catch-all "/{category}" and must be registered
after every other router.
"""

import logging
import traceback

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from angle.config import settings
from angle.database import get_db_session
from angle.exceptions import AngleError, NotFoundError
from angle.middleware.request_id import request_id_var
from angle.services.page_renderer import base_url_from_headers, page_renderer
from angle.services.slug_service import is_reserved

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])

HTML_RESPONSES = {200: {"content": {"text/html": {}}}, 302: {"description": "Redirect to /"}}


def _home_redirect() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=302)


def _failure(request: Request, exc: Exception, page: str) -> Response:
    """Unexpected render failure: diagnostics in development, else back home."""
    rid = request_id_var.get("")
    logger.error(
        "[%s] Error rendering %s page %s: %s | query=%s",
        rid,
        page,
        request.url.path,
        str(exc),
        dict(request.query_params),
        exc_info=exc,
    )
    if settings.is_development:
        message = exc.message if isinstance(exc, AngleError) else str(exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": message,
                "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                "url": str(request.url),
                "query": dict(request.query_params),
            },
        )
    return _home_redirect()


@router.get("/", response_class=HTMLResponse, responses=HTML_RESPONSES, summary="Home page")
async def home_page(request: Request) -> Response:
    try:
        html = await page_renderer.render_home(base_url_from_headers(request.headers))
    except Exception as e:
        if settings.is_development:
            return _failure(request, e, "home")
        logger.error("Error rendering home page: %s", str(e), exc_info=True)
        message = e.message if isinstance(e, AngleError) else "Failed to render page"
        return JSONResponse(status_code=500, content={"success": False, "error": message})
    return HTMLResponse(content=html)


async def _episode_page(request: Request, episode_id: str, db: AsyncSession) -> Response:
    episode_id = episode_id.strip()
    if not episode_id:
        return PlainTextResponse("Episode ID is required", status_code=400)

    try:
        html = await page_renderer.render_episode(db, episode_id, base_url_from_headers(request.headers))
    except NotFoundError:
        logger.info("Episode %s not found, redirecting home", episode_id)
        return _home_redirect()
    except Exception as e:
        return _failure(request, e, "episode")
    return HTMLResponse(content=html)


async def _category_page(request: Request, category: str, db: AsyncSession) -> Response:
    segment = category.strip()
    if not segment:
        return PlainTextResponse("Category is required", status_code=400)
    if is_reserved(segment):
        return PlainTextResponse("Not Found", status_code=404)

    try:
        html = await page_renderer.render_category(db, segment, base_url_from_headers(request.headers))
    except NotFoundError:
        logger.info("Unknown category %r, redirecting home", segment)
        return _home_redirect()
    except Exception as e:
        return _failure(request, e, "category")
    return HTMLResponse(content=html)


@router.get("/api/render/episode/{episode_id}", response_class=HTMLResponse, responses=HTML_RESPONSES)
async def render_episode(episode_id: str, request: Request, db: AsyncSession = Depends(get_db_session)) -> Response:
    return await _episode_page(request, episode_id, db)


@router.get("/api/render/{category}", response_class=HTMLResponse, responses=HTML_RESPONSES)
async def render_category(category: str, request: Request, db: AsyncSession = Depends(get_db_session)) -> Response:
    return await _category_page(request, category, db)


@router.get("/episode/{episode_id}", response_class=HTMLResponse, responses=HTML_RESPONSES, summary="Episode page")
async def episode_page(episode_id: str, request: Request, db: AsyncSession = Depends(get_db_session)) -> Response:
    return await _episode_page(request, episode_id, db)


@router.get("/{category}", response_class=HTMLResponse, responses=HTML_RESPONSES, summary="Category page")
async def category_page(category: str, request: Request, db: AsyncSession = Depends(get_db_session)) -> Response:
    return await _category_page(request, category, db)
