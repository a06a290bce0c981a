"""
Angle Backend — Episode Route Handlers
=======================================

What:  GET /api/episodes (list) and GET /api/episodes/{id} (detail).
How:   Delegates to EpisodeService and wraps the result in the success
       envelope. Failures propagate to the global exception handlers.
Who:   Called by the single-page client.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from angle.database import get_db_session
from angle.exceptions import InvalidInputError, NotFoundError
from angle.schemas.episode import ApiResponse, EpisodeOut, ErrorResponse
from angle.services.episode_service import episode_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Episodes"])


@router.get(
    "/episodes",
    response_model=ApiResponse[List[EpisodeOut]],
    responses={500: {"description": "Database read failed", "model": ErrorResponse}},
    summary="List completed episodes, newest first",
)
async def list_episodes(
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[EpisodeOut]]:
    episodes = await episode_service.list_episodes(db)
    return ApiResponse[List[EpisodeOut]](data=episodes)


@router.get(
    "/episodes/{episode_id}",
    response_model=ApiResponse[EpisodeOut],
    responses={
        400: {"description": "Blank episode ID", "model": ErrorResponse},
        404: {"description": "Episode not found", "model": ErrorResponse},
        500: {"description": "Database read failed", "model": ErrorResponse},
    },
    summary="Get one completed episode",
)
async def get_episode(
    episode_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[EpisodeOut]:
    """
    Draft and other non-completed episodes are reported as not found, the
    same as ids that do not exist.
    """
    episode_id = episode_id.strip()
    if not episode_id:
        raise InvalidInputError(message="Episode ID is required", field="id")

    episode = await episode_service.get_episode(db, episode_id)
    if episode is None:
        raise NotFoundError(resource="episode", resource_id=episode_id)
    return ApiResponse[EpisodeOut](data=episode)
