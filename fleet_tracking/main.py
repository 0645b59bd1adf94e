import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from fleet_tracking.core.logging import setup_logging

setup_logging()

from fleet_tracking.api.exception_handlers import register_exception_handlers
from fleet_tracking.api.middleware.request_id import RequestIdMiddleware
from fleet_tracking.api.routes import health, tracking_numbers
from fleet_tracking.core.config import settings
from fleet_tracking.core.database import engine

logger = logging.getLogger(__name__)

try:
    settings.validate_settings()
except ValueError as e:
    logger.critical("Settings validation failed: %s", e)
    raise SystemExit(f"FATAL: {e}") from e


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "Tracking service starting (default region %s, barcode service %s)",
        settings.tracking_default_region,
        "configured" if settings.barcode_service_url else "not configured",
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Fleet Tracking API",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)
app.add_middleware(RequestIdMiddleware)

app.include_router(health.router, prefix="/api")
app.include_router(tracking_numbers.router, prefix="/api")
