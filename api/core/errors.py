"""
Error taxonomy shared by the repository, auth and routing layers.

Every error carries the HTTP status it maps to; `main.py` registers one
exception handler that renders them as `{"success": false, "error": ...}`.
"""

from __future__ import annotations


class AppError(RuntimeError):
    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(AppError):
    status_code = 400
    default_message = "Required fields are missing."


class Unauthorized(AppError):
    status_code = 401
    default_message = "Not authenticated."


class NotFound(AppError):
    status_code = 404
    default_message = "Message not found."


class InternalError(AppError):
    status_code = 500
