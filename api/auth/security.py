"""
Auth security helpers.
"""

from __future__ import annotations

import time
from typing import Any

import bcrypt
import jwt

from core import settings

BCRYPT_ROUNDS = 10
DEFAULT_SESSION_MAX_AGE_S = 30 * 24 * 60 * 60
SESSION_TOKEN_TYPE = "session"


class AuthSecurityError(RuntimeError):
    pass


def session_secret() -> str:
    # Local default keeps development simple.
    # In production, set SESSION_SECRET in environment.
    return settings.env_str("SESSION_SECRET", "dev-change-this-secret")


def session_algorithm() -> str:
    return settings.env_str("SESSION_ALG", "HS256")


def session_max_age_s() -> int:
    max_age = settings.env_int("SESSION_MAX_AGE_S", DEFAULT_SESSION_MAX_AGE_S)
    return max_age if max_age > 0 else DEFAULT_SESSION_MAX_AGE_S


def now_epoch_s() -> int:
    return int(time.time())


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_session_token(*, user_id: int, email: str) -> tuple[str, int]:
    """
    Return a signed session token and its expiry (unix seconds).
    """
    issued_at = now_epoch_s()
    expires_at = issued_at + session_max_age_s()

    payload = {
        "sub": str(user_id),
        "email": email,
        "type": SESSION_TOKEN_TYPE,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, session_secret(), algorithm=session_algorithm()), expires_at


def decode_session_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Session token is empty.")

    try:
        payload = jwt.decode(raw, session_secret(), algorithms=[session_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Session has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid session token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != SESSION_TOKEN_TYPE:
        raise AuthSecurityError("Token is not a session token.")

    return payload
