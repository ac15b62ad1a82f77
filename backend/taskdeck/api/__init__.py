"""API router package."""

from fastapi import APIRouter

from taskdeck.api.v1 import health, notifications, preferences, session, tasks

router = APIRouter()

router.include_router(health.router, tags=["Health"])
router.include_router(session.router, prefix="/session", tags=["Session"])
router.include_router(preferences.router, prefix="/preferences", tags=["Preferences"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
