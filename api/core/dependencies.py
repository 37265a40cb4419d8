"""
FastAPI dependencies for shared infrastructure.
"""

from __future__ import annotations

import asyncpg
from fastapi import Depends, Request

from .db import ConnectionCache


def get_connection_cache(request: Request) -> ConnectionCache:
    return request.app.state.connection_cache


async def get_pool(cache: ConnectionCache = Depends(get_connection_cache)) -> asyncpg.Pool:
    return await cache.acquire()
