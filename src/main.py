"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.ql_admin.api.router import router as admin_router
from src.ql_common.database import async_session_factory, engine
from src.ql_common.errors import AppError
from src.ql_common.response import error_response
from src.ql_gateway.middleware.request_log import RequestLogMiddleware
from src.ql_governance.api.router import router as governance_router
from src.ql_launchpad.application.service import get_launchpad_service
from src.ql_market.api.router import router as market_router
from src.ql_quorum.api.router import router as quorum_router
from src.ql_trading.api.router import router as trading_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: reload persisted state when persistence is on. Shutdown: dispose."""
    if settings.PERSISTENCE_ENABLED:
        async with async_session_factory() as db:
            await get_launchpad_service().restore(db)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(trading_router, prefix="/api/v1")
app.include_router(quorum_router, prefix="/api/v1")
app.include_router(governance_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
