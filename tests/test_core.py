import logging

import asyncpg
import pytest
from fastapi.testclient import TestClient

from core import db as db_module
from core.config import DEFAULT_ADMIN_EMAIL, Settings
from core.db import Database
from core.errors import InternalError
from messages import repository


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/board?sslmode=require")
    monkeypatch.setenv("JWT_SECRET", "from-env")
    monkeypatch.setenv("ADMIN_PASSWORD", "pw")
    monkeypatch.setenv("CORS_ORIGIN", "https://a.example, https://b.example,")
    monkeypatch.setenv("PORT", "not-a-number")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("API_URL", raising=False)

    settings = Settings.from_env()

    assert settings.jwt_secret == "from-env"
    assert settings.admin_email == DEFAULT_ADMIN_EMAIL
    assert settings.admin_password == "pw"
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.port == 3001
    assert settings.api_url == "http://localhost:3001"
    assert settings.log_level == "DEBUG"


def test_sanitize_database_url_drops_sslmode():
    url = "postgresql://u:p@db:5432/board?sslmode=require&application_name=board"

    assert db_module._sanitize_database_url(url) == "postgresql://u:p@db:5432/board?application_name=board"


@pytest.mark.anyio
async def test_database_without_url_stays_disconnected():
    database = Database(Settings(database_url=""))

    assert await database.connect() is False
    assert await database.ping() is False
    with pytest.raises(InternalError):
        await database.fetch_all("SELECT 1")


@pytest.mark.anyio
async def test_database_connect_failure_is_not_fatal(monkeypatch):
    async def refuse(**_kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(asyncpg, "create_pool", refuse)
    database = Database(Settings(database_url="postgresql://u:p@nowhere:5432/board"))

    assert await database.connect() is False
    assert database.is_connected is False


def test_health_reports_database_state(client, db):
    connected = client.get("/api/health").json()
    db.available = False
    disconnected = client.get("/api/health").json()

    assert connected["success"] is True
    assert connected["status"] == "online"
    assert connected["database"] == "connected"
    assert connected["environment"] == "test"
    assert disconnected["database"] == "disconnected"


def test_lifespan_connects_and_closes(app, db):
    db.available = False

    with TestClient(app) as client:
        assert client.get("/api/health").json()["database"] == "disconnected"

    assert db.closed is True


def test_status_page(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "/api/health" in response.text


def test_cors_allows_configured_origin(client):
    response = client.options(
        "/api/messages",
        headers={
            "Origin": "http://localhost:5501",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5501"


@pytest.mark.anyio
async def test_failed_connect_waits_before_retrying(monkeypatch):
    attempts = []

    async def refuse(**kwargs):
        attempts.append(kwargs)
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(asyncpg, "create_pool", refuse)
    settings = Settings(database_url="postgresql://u:p@nowhere:5432/board", db_retry_interval=60)
    database = Database(settings)

    assert await database.connect() is False
    assert await database.connect() is False
    assert await database.ping() is False
    with pytest.raises(InternalError):
        await database.fetch_val("SELECT 1")

    assert len(attempts) == 1
    assert attempts[0]["timeout"] == settings.db_connect_timeout


@pytest.mark.anyio
async def test_failed_connect_retries_once_interval_has_passed(monkeypatch):
    attempts = []

    async def refuse(**kwargs):
        attempts.append(kwargs)
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(asyncpg, "create_pool", refuse)
    database = Database(Settings(database_url="postgresql://u:p@nowhere:5432/board", db_retry_interval=0))

    await database.connect()
    await database.connect()

    assert len(attempts) == 2


@pytest.mark.anyio
async def test_missing_database_url_is_warned_about_once(caplog):
    database = Database(Settings(database_url=""))

    with caplog.at_level(logging.WARNING, logger="core.db"):
        for _ in range(3):
            await database.connect()
            await database.ping()

    warnings = [r for r in caplog.records if "database_unconfigured" in r.getMessage()]
    assert len(warnings) == 1


def test_unhandled_error_is_500_and_logged_once(app, monkeypatch, caplog):
    async def broken(_db):
        raise RuntimeError("boom")

    monkeypatch.setattr(repository, "list_messages", broken)
    client = TestClient(app, raise_server_exceptions=False)

    with caplog.at_level(logging.INFO):
        response = client.get("/api/messages")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error."}
    assert not [r for r in caplog.records if r.name == "main"]
    access = [r for r in caplog.records if r.name == "api.access"]
    assert len(access) == 1
    assert "status=500" in access[0].getMessage()
    assert access[0].exc_info is None
