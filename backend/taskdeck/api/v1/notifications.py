"""Notification endpoints."""

from fastapi import APIRouter

from taskdeck.api.deps import CurrentIdentity, Notifications
from taskdeck.services.notification import Notification

router = APIRouter()


@router.get("", response_model=list[Notification])
async def drain_notifications(
    identity: CurrentIdentity,
    notifications: Notifications,
) -> list[Notification]:
    """Return and clear pending notifications, oldest first."""
    return notifications.drain()
