"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)


class AdminUser(BaseModel):
    email: str
    role: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful."
    token: str
    user: AdminUser


class VerifyTokenResponse(BaseModel):
    success: bool = True
    user: AdminUser
