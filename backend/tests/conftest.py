# tests/conftest.py

from __future__ import annotations

import pytest

from taskdeck.schemas import Identity
from taskdeck.services.notification import NotificationService
from taskdeck.services.preferences import Preferences
from taskdeck.services.task_list import TaskListController

from .fakes import FakeTaskStore, make_task


@pytest.fixture()
def identity() -> Identity:
    return Identity(id="user-1", email="user@example.com")


@pytest.fixture()
def store() -> FakeTaskStore:
    """Three tasks A, B, C in order 0, 1, 2."""
    return FakeTaskStore(
        [
            make_task("a", "Buy milk", 0, description="semi-skimmed"),
            make_task("b", "Write report", 1, status="completed"),
            make_task("c", "Call plumber", 2, status="in-progress"),
        ]
    )


@pytest.fixture()
def notifications() -> NotificationService:
    return NotificationService(max_history=20)


@pytest.fixture()
def preferences() -> Preferences:
    return Preferences(theme="dark")


@pytest.fixture()
def controller(
    identity: Identity,
    store: FakeTaskStore,
    notifications: NotificationService,
    preferences: Preferences,
) -> TaskListController:
    """Controller over the fake store. Not loaded yet."""
    return TaskListController(identity, store, notifications, preferences)
