"""
Video metadata persistence (raw SQL).
"""

from __future__ import annotations

import asyncpg

from core import db

_COLUMNS = """
    id, title, description, video_url, thumbnail_url, controls,
    height, width, quality, created_at, updated_at
"""


async def list_videos(pool: asyncpg.Pool) -> list[dict]:
    """
    Return every video, newest first.
    """
    return await db.fetch_all(
        pool,
        f"""
        SELECT {_COLUMNS}
        FROM videos
        ORDER BY created_at DESC, id DESC
        """,
    )


async def get_video(pool: asyncpg.Pool, video_id: int) -> dict | None:
    return await db.fetch_one(
        pool,
        f"""
        SELECT {_COLUMNS}
        FROM videos
        WHERE id = $1
        """,
        video_id,
    )


async def create_video(
    pool: asyncpg.Pool,
    *,
    title: str,
    description: str,
    video_url: str,
    thumbnail_url: str,
    controls: bool,
    height: int,
    width: int,
    quality: int | None,
) -> dict:
    row = await db.fetch_one(
        pool,
        f"""
        INSERT INTO videos (title, description, video_url, thumbnail_url, controls, height, width, quality)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        RETURNING {_COLUMNS}
        """,
        title,
        description,
        video_url,
        thumbnail_url,
        controls,
        height,
        width,
        quality,
    )
    if row is None:
        raise RuntimeError("Failed to create video.")
    return row
