"""
Angle Backend — Health Check Route
===================================

What:  GET /api/health for container and load balancer probes.
       Lives under the reserved /api prefix so that a category slug such
       as "health" stays a page.
How:   Runs SELECT 1 against the database. Always answers 200; the body
       says whether the database was reachable.

Status levels:
    healthy:   database reachable
    unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from angle import __version__
from angle.database import engine
from angle.schemas.episode import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
