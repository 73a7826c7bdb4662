"""Health and readiness endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from src.main import get_uptime

    return {
        "status": "healthy",
        "version": settings.app_version,
        "uptime_seconds": get_uptime(),
    }


@router.get("/ready")
async def ready() -> JSONResponse:
    db_ok = True
    if settings.database_enabled:
        from src.db.database import check_db

        db_ok = await check_db()

    status_code = 200 if db_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if db_ok else "degraded",
            "database": db_ok if settings.database_enabled else "disabled",
            "kafka": "enabled" if settings.kafka_enabled else "disabled",
        },
    )
