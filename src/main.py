"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import sys

if sys.platform != "win32":
    import uvloop

    uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.mk_common.database import dispose_engine, get_engine
from src.mk_common.errors import AppError
from src.mk_common.redis_client import close_redis, ping_redis
from src.mk_common.request_log import RequestLogMiddleware
from src.mk_common.response import from_app_error
from src.mk_dashboard.api.router import router as dashboard_router
from src.mk_dashboard.application.service import shutdown_registry

APP_VERSION = "0.1.0"

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis when the Postgres gateway is used. Shutdown: close sessions, dispose."""
    # Startup
    if settings.GATEWAY_BACKEND == "postgres":
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        await ping_redis()
    yield
    # Shutdown
    await shutdown_registry()
    if settings.GATEWAY_BACKEND == "postgres":
        await dispose_engine()
        await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=APP_VERSION,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = from_app_error(exc, getattr(request.state, "request_id", None))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(dashboard_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": APP_VERSION}
