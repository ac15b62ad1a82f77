"""Health check endpoints."""

from fastapi import APIRouter

from taskdeck.api.deps import AppSettings, Backend
from taskdeck.exceptions import StoreError

router = APIRouter()


@router.get("/health")
async def health_check(settings: AppSettings) -> dict[str, str]:
    """Basic health check."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check(
    settings: AppSettings,
    backend: Backend,
) -> dict[str, str | dict[str, str]]:
    """Readiness check including task store connectivity."""
    checks: dict[str, str] = {}

    try:
        await backend.ping()
        checks["store"] = "healthy"
    except StoreError as e:
        checks["store"] = f"unhealthy: {e.message}"

    overall_status = "healthy" if all(v == "healthy" for v in checks.values()) else "unhealthy"

    return {
        "status": overall_status,
        "version": settings.app_version,
        "backend": backend.name,
        "checks": checks,
    }
