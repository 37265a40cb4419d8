"""
Pydantic schemas for video metadata endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from core.schema import VIDEO_DEFAULT_HEIGHT, VIDEO_DEFAULT_WIDTH

DEFAULT_QUALITY = 100


class Transformation(BaseModel):
    height: int = VIDEO_DEFAULT_HEIGHT
    width: int = VIDEO_DEFAULT_WIDTH
    quality: int | None = Field(default=None, ge=1, le=100)


class VideoCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    video_url: str = Field(..., min_length=1)
    thumbnail_url: str = Field(..., min_length=1)
    controls: bool | None = None
    transformation: Transformation | None = None


class VideoResponse(BaseModel):
    id: int
    title: str
    description: str
    video_url: str
    thumbnail_url: str
    controls: bool = True
    transformation: Transformation
    created_at: datetime | None = None
    updated_at: datetime | None = None
