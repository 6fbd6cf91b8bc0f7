"""
Pytest configuration and fixtures.

The datastore is replaced by `RecordingDatabase`: it hands back rows queued
by the test in call order and records every statement it was asked to run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from auth import security
from core.config import Settings
from core.context import AppContext
from main import create_app

ADMIN_EMAIL = "rh.admin"
ADMIN_PASSWORD = "s3cret-pass"


class RecordingDatabase:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self.results: list[Any] = []
        self.available = True
        self.closed = False

    def queue(self, *results: Any) -> None:
        self.results.extend(results)

    def _record(self, kind: str, sql: str, args: tuple[Any, ...], default: Any = None) -> Any:
        self.calls.append((kind, " ".join(sql.split()), args))
        if self.results:
            return self.results.pop(0)
        return default

    @property
    def statements(self) -> list[str]:
        return [sql for (_, sql, _) in self.calls]

    async def connect(self) -> bool:
        return self.available

    async def close(self) -> None:
        self.closed = True

    async def ping(self) -> bool:
        return self.available

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        return self._record("fetch_one", sql, args)

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        return self._record("fetch_all", sql, args, default=[])

    async def fetch_val(self, sql: str, *args: Any) -> Any:
        return self._record("fetch_val", sql, args, default=0)

    async def execute(self, sql: str, *args: Any) -> str:
        return self._record("execute", sql, args, default="OK")


def make_row(message_id: int, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": message_id,
        "sender_name": "Ana",
        "recipient_name": "Bruno",
        "body": "Thanks for the help with the release!",
        "is_printed": False,
        "printed_at": None,
        "created_at": datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
        "status": "active",
    }
    row.update(overrides)
    return row


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        environment="test",
        cors_origins=("http://localhost:5501",),
    )


@pytest.fixture
def db() -> RecordingDatabase:
    return RecordingDatabase()


@pytest.fixture
def app(settings: Settings, db: RecordingDatabase):
    return create_app(AppContext(settings=settings, db=db))


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers(settings: Settings) -> dict[str, str]:
    token = security.build_access_token(settings, email=ADMIN_EMAIL)
    return {"Authorization": f"Bearer {token}"}
