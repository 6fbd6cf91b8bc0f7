"""
Auth security helpers.
"""

from __future__ import annotations

import hmac
import time
from typing import Any

import bcrypt
import jwt

from core.config import Settings

ADMIN_ROLE = "admin"


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def constant_time_equals(left: str, right: str) -> bool:
    return hmac.compare_digest((left or "").encode("utf-8"), (right or "").encode("utf-8"))


def check_admin_password(settings: Settings, plain_password: str) -> bool:
    """
    A configured bcrypt hash wins over the plain ADMIN_PASSWORD.
    With neither configured nobody can log in.
    """
    if settings.admin_password_hash:
        return verify_password(plain_password, settings.admin_password_hash)
    if not settings.admin_password:
        return False
    return constant_time_equals(plain_password, settings.admin_password)


def build_access_token(settings: Settings, *, email: str) -> str:
    issued_at = now_epoch_s()
    expires_at = issued_at + (settings.token_expire_hours * 3600)

    payload = {
        "email": email,
        "role": ADMIN_ROLE,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    if str(payload.get("role") or "") != ADMIN_ROLE:
        raise AuthSecurityError("Token does not grant admin access.")
    if not str(payload.get("email") or "").strip():
        raise AuthSecurityError("Invalid access token subject.")

    return payload
