"""
Auth business logic.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        created_at=user_row.get("created_at"),
    )


def _email_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Email already registered",
    )


async def register(pool: asyncpg.Pool, payload: schemas.RegisterRequest) -> dict:
    email = security.normalize_email(payload.email)
    if not email or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required",
        )

    existing = await repository.get_user_by_email(pool, email)
    if existing is not None:
        raise _email_taken()

    password_hash = security.hash_password(payload.password)
    try:
        user_row = await repository.create_user(pool, email=email, password_hash=password_hash)
    except asyncpg.UniqueViolationError as exc:
        # Lost a race with a concurrent registration for the same email.
        raise _email_taken() from exc

    logger.info("user_registered user_id=%s", user_row["id"])
    return {"message": "User registered successfully"}


async def login(pool: asyncpg.Pool, payload: schemas.LoginRequest) -> schemas.LoginResponse:
    user_row = await repository.get_user_by_email(pool, payload.email)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    is_valid = security.verify_password(payload.password, str(user_row.get("password_hash") or ""))
    if not is_valid:
        logger.info("login_rejected user_id=%s", user_row["id"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    token, expires_at = security.build_session_token(
        user_id=int(user_row["id"]),
        email=str(user_row["email"]),
    )
    return schemas.LoginResponse(
        user=_to_user_response(user_row),
        session=schemas.SessionToken(access_token=token, expires_at=expires_at),
    )


async def get_user_from_session_token(pool: asyncpg.Pool, token: str) -> dict:
    try:
        payload = security.decode_session_token(token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session subject.",
        )

    user_row = await repository.get_user_by_id(pool, int(subject))
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    return {**user_row, "session_expires_at": int(payload["exp"])}


def session(current_user: dict) -> schemas.SessionResponse:
    return schemas.SessionResponse(
        user=_to_user_response(current_user),
        expires_at=int(current_user["session_expires_at"]),
    )
