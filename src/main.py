"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.sf_admin.api.router import public_router as settings_router
from src.sf_admin.api.router import router as admin_router
from src.sf_catalog.api.router import router as catalog_router
from src.sf_common.errors import AppError
from src.sf_common.response import error_body
from src.sf_gateway.api.router import router as auth_router
from src.sf_gateway.middleware.request_log import RequestLogMiddleware
from src.sf_messaging.api.router import router as messaging_router
from src.sf_order.api.router import router as order_router
from src.sf_order.application.service import get_order_store, reset_order_store
from src.sf_store.application.service import close_store, get_store

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: connect the store, start the expiry sweeper. Shutdown: stop both."""
    await get_store()
    order_store = await get_order_store()
    sweeper_task: asyncio.Task[None] | None = None
    if settings.ORDER_SWEEP_INTERVAL_SECONDS > 0:
        sweeper_task = asyncio.create_task(
            order_store.sweeper.run_periodically(settings.ORDER_SWEEP_INTERVAL_SECONDS)
        )
    yield
    if sweeper_task is not None:
        sweeper_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper_task
    await order_store.sweeper.drain()
    reset_order_store()
    await close_store()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=error_body(request, exc.code, exc.message),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(catalog_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(messaging_router, prefix="/api/v1")
app.include_router(settings_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0", "store": settings.STORE_BACKEND}
