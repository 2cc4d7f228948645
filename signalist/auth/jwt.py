from __future__ import annotations

import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

ALGORITHM = "HS256"
ACCESS_TOKEN_TTL_MINUTES = 30
REFRESH_TOKEN_TTL_DAYS = 7


def _secret() -> str:
    return os.getenv("JWT_SECRET_KEY", "signalist-dev-secret")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _encode(claims: dict[str, Any], ttl: timedelta) -> str:
    now = _now_utc()
    payload = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def create_access_token(subject: str, email: str, ttl_minutes: int = ACCESS_TOKEN_TTL_MINUTES) -> str:
    return _encode({"sub": subject, "email": email, "type": "access"}, timedelta(minutes=ttl_minutes))


def create_refresh_token(subject: str, email: str, jti: str | None = None, ttl_days: int = REFRESH_TOKEN_TTL_DAYS) -> str:
    claims = {
        "sub": subject,
        "email": email,
        "type": "refresh",
        "jti": jti or secrets.token_hex(16),
    }
    return _encode(claims, timedelta(days=ttl_days))


def decode_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired token") from exc


def refresh_expiry_utc() -> datetime:
    return (_now_utc() + timedelta(days=REFRESH_TOKEN_TTL_DAYS)).replace(tzinfo=None)
