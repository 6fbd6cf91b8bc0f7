"""
Runtime settings read from environment variables.

Settings are read once by `Settings.from_env()` and passed around explicitly
through `core.context.AppContext`; nothing in the codebase reads `os.environ`
outside this module.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_JWT_SECRET = "dev-change-this-secret"
DEFAULT_ADMIN_EMAIL = "rh.admin"
DEFAULT_CORS_ORIGINS = ("http://localhost:5501", "http://127.0.0.1:5500")
DEFAULT_PORT = 3001


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_pool_min: int = 1
    db_pool_max: int = 5
    db_command_timeout: int = 30
    db_connect_timeout: int = 5
    # Seconds to wait after a failed connect before trying again.
    db_retry_interval: int = 5

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_expire_hours: int = 24

    admin_email: str = DEFAULT_ADMIN_EMAIL
    admin_password: str = ""
    # bcrypt hash; wins over the plain password when both are set.
    admin_password_hash: str = ""

    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    environment: str = "development"
    port: int = DEFAULT_PORT
    api_url: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        port = _env_int("PORT", DEFAULT_PORT)
        return cls(
            database_url=_env_str("DATABASE_URL"),
            db_pool_min=_env_int("DB_POOL_MIN", 1),
            db_pool_max=_env_int("DB_POOL_MAX", 5),
            db_command_timeout=_env_int("DB_COMMAND_TIMEOUT", 30),
            db_connect_timeout=_env_int("DB_CONNECT_TIMEOUT", 5),
            db_retry_interval=_env_int("DB_RETRY_INTERVAL", 5),
            jwt_secret=_env_str("JWT_SECRET", DEFAULT_JWT_SECRET),
            jwt_algorithm=_env_str("JWT_ALG", "HS256"),
            admin_email=_env_str("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL),
            admin_password=os.environ.get("ADMIN_PASSWORD", ""),
            admin_password_hash=_env_str("ADMIN_PASSWORD_HASH"),
            cors_origins=_env_list("CORS_ORIGIN", DEFAULT_CORS_ORIGINS),
            environment=_env_str("ENVIRONMENT", "development"),
            port=port,
            api_url=_env_str("API_URL", f"http://localhost:{port}"),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )
