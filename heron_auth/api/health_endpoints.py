"""
Health Check Endpoints
---------------------
Liveness and database readiness checks.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text

from heron_auth.core.config_manager import settings
from heron_auth.core.database_connection import db_manager
from heron_auth.models.response_models import HealthStatus

router = APIRouter(prefix="/api/v1/health", tags=["Health"])


@router.get("", response_model=HealthStatus)
@router.get("/", response_model=HealthStatus, include_in_schema=False)
async def health_check():
    """
    Basic liveness check.

    Returns:
        HealthStatus: Service status and version
    """
    logger.debug("Health check requested")
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
    )


@router.get("/database")
async def database_health():
    """Run ``SELECT 1`` against PostgreSQL. Answers 503 when unreachable."""
    healthy = await _check_database()
    payload = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(status_code=200 if healthy else 503, content=payload)


async def _check_database() -> bool:
    if not db_manager.is_initialized:
        return False
    try:
        async with db_manager.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
