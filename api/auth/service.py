"""
Auth business logic.

There is exactly one account: the admin identity configured through
ADMIN_EMAIL / ADMIN_PASSWORD (or ADMIN_PASSWORD_HASH). No users table,
no refresh tokens, no revocation; a token is valid until it expires.
"""

from __future__ import annotations

import logging

from core.config import Settings
from core.errors import Unauthorized

from . import schemas, security

logger = logging.getLogger(__name__)


def _to_admin_user(email: str) -> schemas.AdminUser:
    return schemas.AdminUser(email=email, role=security.ADMIN_ROLE)


def login(settings: Settings, payload: schemas.LoginRequest) -> schemas.LoginResponse:
    email = (payload.email or "").strip()

    email_ok = security.constant_time_equals(email, settings.admin_email)
    password_ok = security.check_admin_password(settings, payload.password)
    if not (email_ok and password_ok):
        logger.warning("login_rejected email=%s", email)
        raise Unauthorized("Invalid credentials.")

    token = security.build_access_token(settings, email=email)
    logger.info("login_ok email=%s", email)
    return schemas.LoginResponse(token=token, user=_to_admin_user(email))


def verify(settings: Settings, access_token: str) -> schemas.AdminUser:
    try:
        payload = security.decode_access_token(settings, access_token)
    except security.AuthSecurityError as exc:
        raise Unauthorized(str(exc)) from exc
    return _to_admin_user(str(payload["email"]))
