"""
Auth persistence helpers.
"""

from __future__ import annotations

import asyncpg

from core import db

from .security import normalize_email


async def create_user(pool: asyncpg.Pool, *, email: str, password_hash: str) -> dict:
    row = await db.fetch_one(
        pool,
        """
        INSERT INTO users (email, password_hash)
        VALUES ($1, $2)
        RETURNING id, email, created_at, updated_at
        """,
        normalize_email(email),
        password_hash,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(pool: asyncpg.Pool, email: str) -> dict | None:
    return await db.fetch_one(
        pool,
        """
        SELECT id, email, password_hash, created_at, updated_at
        FROM users
        WHERE email = $1
        """,
        normalize_email(email),
    )


async def get_user_by_id(pool: asyncpg.Pool, user_id: int) -> dict | None:
    return await db.fetch_one(
        pool,
        """
        SELECT id, email, password_hash, created_at, updated_at
        FROM users
        WHERE id = $1
        """,
        user_id,
    )
