"""Services package."""

from taskdeck.services.notification import Notification, NotificationService
from taskdeck.services.preferences import Preferences, PreferenceStore
from taskdeck.services.session import (
    InMemorySessionProvider,
    RemoteSessionProvider,
    resolve_route,
)
from taskdeck.services.task_list import (
    ReorderOutcome,
    TaskListController,
    TaskListRegistry,
    filter_tasks,
    move_task,
)

__all__ = [
    "InMemorySessionProvider",
    "Notification",
    "NotificationService",
    "PreferenceStore",
    "Preferences",
    "RemoteSessionProvider",
    "ReorderOutcome",
    "TaskListController",
    "TaskListRegistry",
    "filter_tasks",
    "move_task",
    "resolve_route",
]
