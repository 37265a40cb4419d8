"""
Table bootstrap for the users and videos tables.

Runs once, right after the pool is opened, when DB_AUTO_SCHEMA is enabled.
"""

from __future__ import annotations

import asyncpg

from . import db, settings

VIDEO_DEFAULT_WIDTH = 1080
VIDEO_DEFAULT_HEIGHT = 1920

STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS videos (
        id BIGSERIAL PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        video_url TEXT NOT NULL,
        thumbnail_url TEXT NOT NULL,
        controls BOOLEAN NOT NULL DEFAULT true,
        height INTEGER NOT NULL DEFAULT {VIDEO_DEFAULT_HEIGHT},
        width INTEGER NOT NULL DEFAULT {VIDEO_DEFAULT_WIDTH},
        quality INTEGER CHECK (quality BETWEEN 1 AND 100),
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    "CREATE INDEX IF NOT EXISTS videos_created_at_idx ON videos (created_at DESC)",
)


def auto_schema_enabled() -> bool:
    return settings.env_bool("DB_AUTO_SCHEMA", True)


async def ensure_schema(pool: asyncpg.Pool) -> None:
    for statement in STATEMENTS:
        await db.execute(pool, statement)
