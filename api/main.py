from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import asyncpg
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import router as auth_router
from core.config import Settings
from core.context import AppContext, get_context
from core.errors import AppError, Unauthorized
from core.log import access_log_middleware, configure_logging
from messages import router as messages_router

SERVICE_NAME = "Recognition Board API"
API_PREFIX = "/api"

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    fields: list[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())[1:]]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return f"Required fields are missing or invalid: {', '.join(fields)}."


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        if exc.status_code >= 500:
            logger.error("request_failed path=%s error=%s", request.url.path, exc)
        return _error(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(asyncpg.PostgresError)
    async def database_error_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
        logger.error("database_error path=%s error=%s", request.url.path, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error.")

    # Starlette re-raises after this handler runs, so the server logs the traceback.
    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


def create_app(context: AppContext | None = None) -> FastAPI:
    if context is None:
        context = AppContext.from_settings(Settings.from_env())
    settings = context.settings
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # A missing datastore degrades /api/health instead of failing startup.
        connected = await context.db.connect()
        if not connected:
            logger.warning("startup_degraded database=disconnected")
        logger.info(
            "startup service=%r url=%s environment=%s database=%s admin=%s",
            SERVICE_NAME,
            settings.api_url,
            settings.environment,
            "connected" if connected else "disconnected",
            settings.admin_email,
        )
        try:
            yield
        finally:
            await context.db.close()

    app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)
    app.state.context = context

    app.middleware("http")(access_log_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept"],
    )
    _register_exception_handlers(app)

    app.include_router(auth_router.router, prefix=API_PREFIX, tags=["auth"])
    app.include_router(messages_router.router, prefix=API_PREFIX, tags=["messages"])

    @app.get(f"{API_PREFIX}/health", tags=["health"])
    async def health(ctx: AppContext = Depends(get_context)) -> dict:
        database_ok = await ctx.db.ping()
        return {
            "success": True,
            "service": SERVICE_NAME,
            "status": "online",
            "database": "connected" if database_ok else "disconnected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": ctx.settings.environment,
        }

    @app.get("/", include_in_schema=False)
    async def root(ctx: AppContext = Depends(get_context)) -> HTMLResponse:
        return HTMLResponse(_status_page(ctx.settings))

    return app


def _status_page(settings: Settings) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{SERVICE_NAME}</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 40px; background: #f5f5f5; }}
    .container {{ max-width: 800px; margin: 0 auto; background: white; padding: 30px; border-radius: 8px; }}
    .status {{ padding: 12px; border-radius: 5px; margin: 15px 0; }}
    .online {{ background: #d4edda; color: #155724; }}
    .offline {{ background: #f8d7da; color: #721c24; }}
    code {{ background: #f0f0f0; padding: 2px 6px; border-radius: 3px; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>{SERVICE_NAME}</h1>
    <p>REST API for the recognition message board.</p>
    <div id="status" class="status">Checking status...</div>
    <h3>Endpoints</h3>
    <ul>
      <li><code>GET  {API_PREFIX}/health</code> service status</li>
      <li><code>POST {API_PREFIX}/login</code> admin login</li>
      <li><code>GET  {API_PREFIX}/verify-token</code> validate token (admin)</li>
      <li><code>GET  {API_PREFIX}/messages</code> list messages</li>
      <li><code>POST {API_PREFIX}/messages/public</code> submit a message</li>
      <li><code>GET  {API_PREFIX}/messages/new</code> messages since an id (admin)</li>
      <li><code>GET  {API_PREFIX}/messages/stats</code> statistics</li>
    </ul>
    <p><strong>API URL:</strong> <code>{settings.api_url}</code></p>
  </div>
  <script>
    fetch('{API_PREFIX}/health').then(r => r.json()).then(d => {{
      const el = document.getElementById('status');
      el.className = 'status ' + (d.success ? 'online' : 'offline');
      el.textContent = d.success
        ? 'Online | Database: ' + d.database + ' | Environment: ' + d.environment
        : 'Server offline';
    }}).catch(() => {{
      const el = document.getElementById('status');
      el.className = 'status offline';
      el.textContent = 'Could not reach the server';
    }});
  </script>
</body>
</html>"""


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.context.settings
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())
