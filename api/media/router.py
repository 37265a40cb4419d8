"""
Media upload authentication endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter()


@router.get("/api/imagekit-auth")
async def imagekit_auth(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return service.upload_auth()
