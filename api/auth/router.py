"""
Admin login endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core.config import Settings
from core.context import get_settings

from . import dependencies, schemas, service

router = APIRouter()


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    settings: Settings = Depends(get_settings),
) -> schemas.LoginResponse:
    return service.login(settings, payload)


@router.get("/verify-token")
async def verify_token(
    user: schemas.AdminUser = Depends(dependencies.get_current_admin),
) -> schemas.VerifyTokenResponse:
    return schemas.VerifyTokenResponse(user=user)
