"""
Auth API endpoints: registration, credential login and session lookup.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, status

from core.dependencies import get_pool

from . import dependencies, schemas, service

router = APIRouter(prefix="/api/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: schemas.RegisterRequest,
    pool: asyncpg.Pool = Depends(get_pool),
) -> dict:
    return await service.register(pool, payload)


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    pool: asyncpg.Pool = Depends(get_pool),
) -> schemas.LoginResponse:
    return await service.login(pool, payload)


@router.get("/session")
async def session(
    current_user: dict = Depends(dependencies.get_current_user),
) -> schemas.SessionResponse:
    return service.session(current_user)
