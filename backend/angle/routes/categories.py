"""
Angle Backend — Category Route Handler
=======================================

What:  GET /api/categories, the distinct labels of completed episodes.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from angle.database import get_db_session
from angle.schemas.episode import ApiResponse, ErrorResponse
from angle.services.episode_service import episode_service

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get(
    "/categories",
    response_model=ApiResponse[List[str]],
    responses={500: {"description": "Database read failed", "model": ErrorResponse}},
    summary="List category labels, sorted",
)
async def list_categories(
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[str]]:
    categories = await episode_service.list_categories(db)
    return ApiResponse[List[str]](data=categories)
