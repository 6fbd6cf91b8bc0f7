"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Depends, Header

from core.config import Settings
from core.context import get_settings
from core.errors import Unauthorized

from . import schemas, service


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise Unauthorized("Access token not provided.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise Unauthorized("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise Unauthorized("Authorization must be: Bearer <token>.")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_admin(
    access_token: str = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
) -> schemas.AdminUser:
    return service.verify(settings, access_token)
