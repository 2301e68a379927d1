"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.wg_account.api.router import router as account_router
from src.wg_admin.api.router import router as admin_router
from src.wg_common.database import engine, ping_database
from src.wg_common.errors import AppError
from src.wg_common.redis_client import close_redis, ping_redis
from src.wg_common.response import error_response
from src.wg_gateway.middleware.request_log import RequestLogMiddleware
from src.wg_race.api.router import router as race_router
from src.wg_race.infrastructure.result_feed import get_result_feed
from src.wg_settlement.application.engine import get_settlement_engine
from src.wg_wager.api.router import leaderboard_router
from src.wg_wager.api.router import router as wager_router

logger = logging.getLogger("wg.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, load settlement state for admin triggers.

    Automatic settlement runs in the Celery worker (src.worker). Shutdown
    closes the feed client and disposes pools.
    """
    await ping_database()
    await ping_redis()

    try:
        await get_settlement_engine().load_completed()
    except Exception:
        # Never settle against an empty cache; admin triggers answer 503.
        logger.critical(
            "Could not load completed settlements; manual settlement disabled",
            exc_info=True,
        )

    yield

    await get_result_feed().aclose()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(wager_router, prefix="/api/v1")
app.include_router(leaderboard_router, prefix="/api/v1")
app.include_router(race_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
