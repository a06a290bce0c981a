"""
Angle Backend — Sitemap Route Handler
======================================

What:  GET /api/sitemap and GET /sitemap.xml.
How:   SitemapService opens its own sessions (episodes and categories are
       read concurrently), so the handler receives the session factory
       rather than a session.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import async_sessionmaker

from angle.database import get_session_factory
from angle.services.sitemap_service import sitemap_service

router = APIRouter(tags=["Sitemap"])

SITEMAP_MEDIA_TYPE = "application/xml; charset=utf-8"


@router.get("/api/sitemap", response_class=Response, summary="XML sitemap")
@router.get("/sitemap.xml", response_class=Response, include_in_schema=False)
async def sitemap(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> Response:
    document = await sitemap_service.generate(session_factory)
    return Response(
        content=document,
        media_type=SITEMAP_MEDIA_TYPE,
        headers={"Cache-Control": "public, max-age=3600"},
    )
