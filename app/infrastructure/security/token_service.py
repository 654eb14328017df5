"""
Creación y verificación de access tokens (JWT HS256, PyJWT).

Esta API sólo consume tokens emitidos por el servicio de auth; `create_access_token`
existe para scripts y tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import uuid4

import jwt as pyjwt

from app.core.config import settings
from app.core.exceptions import AppError

MISSING_SECRET_MESSAGE = "Authentication is not configured: JWT_SECRET is missing"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def jwt_configured() -> bool:
    return bool(settings.jwt_secret)


def _secret() -> str:
    if not settings.jwt_secret:
        raise AppError(MISSING_SECRET_MESSAGE)
    return settings.jwt_secret


def create_access_token(*, user_id: str, expires_in_minutes: int | None = None) -> str:
    """
    Genera un JWT válido por ACCESS_TOKEN_EXPIRE_MINUTES.
    Claims: sub(user_id), iat, exp, jti.
    """
    now = _now_utc()
    mins = expires_in_minutes if expires_in_minutes is not None else settings.access_token_expire_minutes
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=mins)).timestamp()),
        "jti": str(uuid4()),
    }
    return pyjwt.encode(payload, _secret(), algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida firma/expiración. Devuelve payload.
    """
    return pyjwt.decode(token, key=_secret(), algorithms=[settings.jwt_algorithm])
