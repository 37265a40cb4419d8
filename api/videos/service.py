"""
Video metadata business logic.

Uploads themselves go straight to the media CDN; this module only stores and
lists the resulting URLs.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException

from core.schema import VIDEO_DEFAULT_HEIGHT, VIDEO_DEFAULT_WIDTH

from . import repository, schemas

logger = logging.getLogger(__name__)


def _to_video_response(row: dict) -> schemas.VideoResponse:
    return schemas.VideoResponse(
        id=int(row["id"]),
        title=str(row["title"]),
        description=str(row["description"]),
        video_url=str(row["video_url"]),
        thumbnail_url=str(row["thumbnail_url"]),
        controls=bool(row["controls"]),
        transformation=schemas.Transformation(
            height=int(row["height"]),
            width=int(row["width"]),
            quality=row.get("quality"),
        ),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _required(value: str) -> str:
    return (value or "").strip()


async def list_videos(pool: asyncpg.Pool) -> list[schemas.VideoResponse]:
    try:
        rows = await repository.list_videos(pool)
    except Exception as exc:
        logger.exception("video_list_failed")
        raise HTTPException(status_code=500, detail="Failed to fetch videos.") from exc
    return [_to_video_response(row) for row in rows]


async def get_video(pool: asyncpg.Pool, video_id: int) -> schemas.VideoResponse:
    try:
        row = await repository.get_video(pool, video_id)
    except Exception as exc:
        logger.exception("video_get_failed video_id=%s", video_id)
        raise HTTPException(status_code=500, detail="Failed to fetch video.") from exc
    if row is None:
        raise HTTPException(status_code=404, detail="Video not found.")
    return _to_video_response(row)


async def create_video(
    pool: asyncpg.Pool,
    payload: schemas.VideoCreateRequest,
    *,
    user_id: int,
) -> schemas.VideoResponse:
    title = _required(payload.title)
    description = _required(payload.description)
    video_url = _required(payload.video_url)
    thumbnail_url = _required(payload.thumbnail_url)
    if not (title and description and video_url and thumbnail_url):
        raise HTTPException(status_code=400, detail="Missing required fields")

    quality = schemas.DEFAULT_QUALITY
    if payload.transformation is not None and payload.transformation.quality is not None:
        quality = payload.transformation.quality

    try:
        row = await repository.create_video(
            pool,
            title=title,
            description=description,
            video_url=video_url,
            thumbnail_url=thumbnail_url,
            controls=True if payload.controls is None else payload.controls,
            # Output size is fixed to portrait 1080x1920 regardless of input.
            height=VIDEO_DEFAULT_HEIGHT,
            width=VIDEO_DEFAULT_WIDTH,
            quality=quality,
        )
    except Exception as exc:
        logger.exception("video_create_failed user_id=%s", user_id)
        raise HTTPException(status_code=500, detail="Failed to create video.") from exc

    logger.info("video_created video_id=%s user_id=%s", row["id"], user_id)
    return _to_video_response(row)
