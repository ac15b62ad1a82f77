"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from taskdeck.config import Settings
from taskdeck.schemas import Identity
from taskdeck.services.notification import NotificationService
from taskdeck.services.preferences import Preferences, PreferenceStore
from taskdeck.services.session import InMemorySessionProvider
from taskdeck.services.task_list import TaskListController, TaskListRegistry
from taskdeck.store import TaskStoreBackend


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sessions(request: Request) -> InMemorySessionProvider:
    return request.app.state.sessions


def get_registry(request: Request) -> TaskListRegistry:
    return request.app.state.registry


def get_backend(request: Request) -> TaskStoreBackend:
    return request.app.state.backend


def get_notifications(request: Request) -> NotificationService:
    return request.app.state.notifications


def get_preferences(request: Request) -> Preferences:
    return request.app.state.preferences


def get_preference_store(request: Request) -> PreferenceStore:
    return request.app.state.preference_store


async def get_current_identity(
    sessions: Annotated[InMemorySessionProvider, Depends(get_sessions)],
) -> Identity:
    """The signed-in identity, or 401 pointing the client at the auth screen."""
    identity = sessions.get_current_session()
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


async def get_task_list(
    identity: CurrentIdentity,
    registry: Annotated[TaskListRegistry, Depends(get_registry)],
) -> TaskListController:
    return await registry.get(identity)


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Sessions = Annotated[InMemorySessionProvider, Depends(get_sessions)]
Registry = Annotated[TaskListRegistry, Depends(get_registry)]
Backend = Annotated[TaskStoreBackend, Depends(get_backend)]
Notifications = Annotated[NotificationService, Depends(get_notifications)]
CurrentPreferences = Annotated[Preferences, Depends(get_preferences)]
PreferencesStore = Annotated[PreferenceStore, Depends(get_preference_store)]
TaskList = Annotated[TaskListController, Depends(get_task_list)]
