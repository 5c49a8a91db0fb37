"""Health check endpoints."""
from fastapi import APIRouter
import logging

from ..core.cache import cache_manager
from ..core.config import settings
from ..core.database import health_check_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

@router.get("/")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "Madrasah Admin API",
        "version": settings.app_version,
        "environment": settings.environment,
    }

@router.get("/full")
async def full_health_check():
    """Database and (when configured) Redis"""
    database_ok = await health_check_db()
    checks = {"database": "healthy" if database_ok else "unhealthy"}

    healthy = database_ok
    if cache_manager.enabled:
        redis_ok = await cache_manager.ping()
        checks["redis"] = "healthy" if redis_ok else "unhealthy"
        healthy = healthy and redis_ok
    else:
        checks["redis"] = "disabled"

    if not healthy:
        logger.warning(f"Health check degraded: {checks}")
    return {
        "status": "healthy" if healthy else "unhealthy",
        "version": settings.app_version,
        "checks": checks,
    }
