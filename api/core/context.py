"""
Per-app dependency container.

`main.create_app()` builds one `AppContext` and stores it on `app.state`.
Routes pull pieces of it through the FastAPI dependencies below, so tests can
swap the database or settings without touching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request

from .config import Settings
from .db import Database


@dataclass
class AppContext:
    settings: Settings
    db: Database

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        return cls(settings=settings, db=Database(settings))


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings(context: AppContext = Depends(get_context)) -> Settings:
    return context.settings


def get_db(context: AppContext = Depends(get_context)) -> Database:
    return context.db
