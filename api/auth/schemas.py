"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime | None = None


class SessionToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: int


class LoginResponse(BaseModel):
    user: UserResponse
    session: SessionToken


class SessionResponse(BaseModel):
    user: UserResponse
    expires_at: int
