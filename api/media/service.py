"""
Upload authentication for the hosted media service (ImageKit).

Browsers upload files directly to the CDN. Before each upload they fetch a
short-lived signed token from this API so the private key never leaves the
server.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from uuid import uuid4

from fastapi import HTTPException

from core import settings

DEFAULT_EXPIRE_S = 60 * 40

logger = logging.getLogger(__name__)


class MediaAuthError(RuntimeError):
    pass


def private_key() -> str:
    return settings.env_str("IMAGEKIT_PRIVATE_KEY")


def public_key() -> str:
    return settings.env_str("IMAGEKIT_PUBLIC_KEY")


def url_endpoint() -> str:
    return settings.env_str("IMAGEKIT_URL_ENDPOINT")


def sign(token: str, expire: int, *, key: str) -> str:
    if not key:
        raise MediaAuthError("IMAGEKIT_PRIVATE_KEY is not set.")
    message = f"{token}{expire}".encode("utf-8")
    return hmac.new(key.encode("utf-8"), message, hashlib.sha1).hexdigest()


def authentication_parameters(
    *,
    key: str,
    token: str | None = None,
    expire: int | None = None,
) -> dict:
    token = token or str(uuid4())
    expire = expire or int(time.time()) + DEFAULT_EXPIRE_S
    return {
        "token": token,
        "expire": expire,
        "signature": sign(token, expire, key=key),
    }


def upload_auth() -> dict:
    try:
        params = authentication_parameters(key=private_key())
    except MediaAuthError as exc:
        logger.error("media_auth_failed error=%s", exc)
        raise HTTPException(status_code=500, detail="Authentication failed") from exc

    return {
        **params,
        "public_key": public_key(),
        "url_endpoint": url_endpoint(),
    }
