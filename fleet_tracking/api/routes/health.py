import time

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fleet_tracking.api.dependencies.database import get_db
from fleet_tracking.core.config import settings

router = APIRouter(tags=["health"])


async def _check_database(db: AsyncSession) -> dict:
    try:
        start = time.monotonic()
        await db.execute(text("SELECT 1"))
        latency_ms = round((time.monotonic() - start) * 1000)
        return {"status": "up", "latency_ms": latency_ms}
    except Exception as e:
        return {"status": "down", "error": str(e)}


def _check_barcode_service() -> dict:
    if not settings.barcode_service_url:
        return {"status": "not_configured"}
    return {"status": "configured"}


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    checks = {
        "database": await _check_database(db),
        "barcode_service": _check_barcode_service(),
    }

    overall = "healthy" if checks["database"]["status"] == "up" else "unhealthy"

    return {
        "status": overall,
        "version": "1.0.0",
        "checks": checks,
    }
