"""
Video metadata API endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies
from core.dependencies import get_pool

from . import schemas, service

router = APIRouter(prefix="/api/videos")


@router.get("")
async def list_videos(
    pool: asyncpg.Pool = Depends(get_pool),
) -> list[schemas.VideoResponse]:
    return await service.list_videos(pool)


@router.get("/{video_id}")
async def get_video(
    video_id: int,
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.VideoResponse:
    return await service.get_video(pool, video_id)


@router.post("")
async def create_video(
    payload: schemas.VideoCreateRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.VideoResponse:
    return await service.create_video(pool, payload, user_id=int(current_user["id"]))
