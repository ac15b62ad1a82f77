"""Transient user-facing notifications (toasts)."""

from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from taskdeck.exceptions import TaskDeckError

logger = structlog.get_logger()

_captured: ContextVar[list["Notification"] | None] = ContextVar(
    "taskdeck_captured_notifications", default=None
)


class Notification(BaseModel):
    """One transient success or failure message tied to an operation outcome."""

    level: Literal["success", "error"]
    message: str
    operation: str
    code: str | None = None
    task_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationService:
    """Service for raising and collecting notifications.

    Notifications are kept in a bounded history until drained. Inside a
    ``capture()`` block, every notification raised by the current context
    (including tasks spawned from it) is also appended to the capture list,
    which lets an HTTP operation return exactly the notifications it caused.
    """

    def __init__(self, max_history: int = 50):
        self._history: deque[Notification] = deque(maxlen=max_history)

    def success(self, message: str, *, operation: str, task_id: str | None = None) -> Notification:
        notification = Notification(
            level="success",
            message=message,
            operation=operation,
            task_id=task_id,
        )
        logger.info("notification", operation=operation, message=message)
        return self._record(notification)

    def error(
        self,
        message: str,
        *,
        operation: str,
        error: TaskDeckError | None = None,
        task_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            level="error",
            message=message,
            operation=operation,
            code=error.code if error else None,
            task_id=task_id,
        )
        logger.error(
            "notification",
            operation=operation,
            message=message,
            code=notification.code,
            error=error.message if error else None,
        )
        return self._record(notification)

    def _record(self, notification: Notification) -> Notification:
        self._history.append(notification)
        captured = _captured.get()
        if captured is not None:
            captured.append(notification)
        return notification

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def drain(self) -> list[Notification]:
        """Return and forget every notification in the history."""
        drained = list(self._history)
        self._history.clear()
        return drained

    @contextmanager
    def capture(self) -> Iterator[list[Notification]]:
        captured: list[Notification] = []
        token = _captured.set(captured)
        try:
            yield captured
        finally:
            _captured.reset(token)
