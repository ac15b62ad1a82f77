# tests/test_api.py

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taskdeck.config import Settings
from taskdeck.main import create_app
from taskdeck.schemas import Identity
from taskdeck.services.session import InMemorySessionProvider

from .fakes import FakeBackend, FakeTaskStore, make_attachment, make_task

API = "/api/v1"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="development",
        preferences_path=tmp_path / "preferences.json",
        store_backend="rest",
    )


@pytest.fixture()
def backend(store: FakeTaskStore) -> FakeBackend:
    return FakeBackend(store)


@pytest.fixture()
def client(settings: Settings, backend: FakeBackend, identity: Identity) -> Iterator[TestClient]:
    app = create_app(settings, backend=backend, sessions=InMemorySessionProvider(identity))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def anonymous_client(settings: Settings, backend: FakeBackend) -> Iterator[TestClient]:
    app = create_app(settings, backend=backend, sessions=InMemorySessionProvider())
    with TestClient(app) as test_client:
        yield test_client


def board_ids(body: dict) -> list[str]:
    return [item["id"] for item in body["items"]]


# ---------------------------------------------------------------------------
# health and middleware
# ---------------------------------------------------------------------------


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_request_id_is_echoed(client: TestClient) -> None:
    response = client.get(f"{API}/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_readiness_reports_store_outage(client: TestClient, backend: FakeBackend) -> None:
    assert client.get(f"{API}/health/ready").json()["checks"]["store"] == "healthy"

    backend.down = True
    body = client.get(f"{API}/health/ready").json()

    assert body["status"] == "unhealthy"
    assert body["backend"] == "fake"


def test_shutdown_closes_backend(settings: Settings, backend: FakeBackend) -> None:
    app = create_app(settings, backend=backend, sessions=InMemorySessionProvider())
    with TestClient(app):
        pass
    assert backend.closed


# ---------------------------------------------------------------------------
# session
# ---------------------------------------------------------------------------


def test_signed_out_routes_to_auth(anonymous_client: TestClient) -> None:
    assert anonymous_client.get(f"{API}/session").json() == {"identity": None, "route": "auth"}
    assert anonymous_client.get(f"{API}/tasks").status_code == 401
    assert anonymous_client.get(f"{API}/notifications").status_code == 401


def test_local_sign_in_then_sign_out(anonymous_client: TestClient, store: FakeTaskStore) -> None:
    response = anonymous_client.post(
        f"{API}/session",
        json={"user_id": "user-1", "email": "user@example.com"},
    )

    assert response.status_code == 200
    assert response.json()["route"] == "tasks"
    assert store.count("list_tasks") == 1
    assert board_ids(anonymous_client.get(f"{API}/tasks").json()) == ["a", "b", "c"]

    assert anonymous_client.post(f"{API}/session/sign-out").json()["route"] == "auth"
    assert anonymous_client.get(f"{API}/tasks").status_code == 401


def test_local_sign_in_requires_user_and_email(anonymous_client: TestClient) -> None:
    assert anonymous_client.post(f"{API}/session", json={"user_id": "u"}).status_code == 400


def test_local_sign_in_refused_outside_development(tmp_path: Path, backend: FakeBackend) -> None:
    settings = Settings(environment="production", preferences_path=tmp_path / "p.json")
    app = create_app(settings, backend=backend, sessions=InMemorySessionProvider())
    with TestClient(app) as client:
        response = client.post(f"{API}/session", json={"user_id": "u", "email": "u@example.com"})
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# list and filter
# ---------------------------------------------------------------------------


def test_board_lists_tasks_in_order(client: TestClient) -> None:
    body = client.get(f"{API}/tasks").json()

    assert board_ids(body) == ["a", "b", "c"]
    assert body["total"] == 3
    assert body["state"] == "idle"
    assert body["theme"] == "light"
    assert body["items"][0]["attachments"] is None


def test_board_filters_and_keeps_filter(client: TestClient) -> None:
    body = client.get(f"{API}/tasks", params={"search": "REPORT", "status": "completed"}).json()
    assert board_ids(body) == ["b"]
    assert body["total"] == 3

    assert board_ids(client.get(f"{API}/tasks").json()) == ["b"]
    assert board_ids(client.get(f"{API}/tasks", params={"search": "", "status": "all"}).json()) == [
        "a",
        "b",
        "c",
    ]


def test_invalid_status_filter_is_rejected(client: TestClient) -> None:
    assert client.get(f"{API}/tasks", params={"status": "archived"}).status_code == 422


def test_get_single_task(client: TestClient) -> None:
    assert client.get(f"{API}/tasks/b").json()["status_badge"]["color"] == "green"
    assert client.get(f"{API}/tasks/zzz").status_code == 404


def test_refresh_surfaces_fetch_failure(client: TestClient, store: FakeTaskStore) -> None:
    client.get(f"{API}/tasks")
    store.fail.add("list_tasks")

    body = client.post(f"{API}/tasks/refresh").json()

    assert body["applied"] is False
    assert [n["message"] for n in body["notifications"]] == ["Failed to fetch tasks"]
    assert board_ids(body["board"]) == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# reorder
# ---------------------------------------------------------------------------


def test_reorder(client: TestClient, store: FakeTaskStore) -> None:
    body = client.post(f"{API}/tasks/reorder", json={"from_id": "c", "to_id": "a"}).json()

    assert body["applied"] is True
    assert body["notifications"] == []
    assert board_ids(body["board"]) == ["c", "a", "b"]
    assert store.orders() == {"c": 0, "a": 1, "b": 2}


def test_reorder_partial_failure(client: TestClient, store: FakeTaskStore) -> None:
    store.fail_updates_for.add("b")

    response = client.post(f"{API}/tasks/reorder", json={"from_id": "c", "to_id": "a"})

    assert response.status_code == 200
    body = response.json()
    assert body["failed"] == ["b"]
    assert board_ids(body["board"]) == ["c", "a", "b"]
    assert [n["code"] for n in body["notifications"]] == ["ORDER_SYNC_FAILED"]


# ---------------------------------------------------------------------------
# create / update / delete
# ---------------------------------------------------------------------------


def test_create_task(client: TestClient, store: FakeTaskStore) -> None:
    response = client.post(
        f"{API}/tasks",
        json={"title": "New", "due_date": "2030-05-01", "priority": 4, "labels": ["x"]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["applied"] is True
    assert [n["message"] for n in body["notifications"]] == ["Task created successfully"]
    assert board_ids(body["board"])[-1] == "new-1"
    assert store.rows["new-1"]["order"] == 3


def test_create_task_missing_fields(client: TestClient, store: FakeTaskStore) -> None:
    response = client.post(f"{API}/tasks", json={"description": "no title"})

    assert response.status_code == 422
    assert response.json()["detail"]["fields"] == ["title", "due_date"]
    assert store.count("insert_task") == 0


def test_create_task_store_failure(client: TestClient, store: FakeTaskStore) -> None:
    store.fail.add("insert_task")

    response = client.post(f"{API}/tasks", json={"title": "New", "due_date": "2030-05-01"})

    assert response.status_code == 200
    body = response.json()
    assert body["applied"] is False
    assert body["notifications"][0]["level"] == "error"
    assert board_ids(body["board"]) == ["a", "b", "c"]


def test_update_task(client: TestClient, store: FakeTaskStore) -> None:
    body = client.patch(f"{API}/tasks/a", json={"status": "completed"}).json()

    assert body["applied"] is True
    assert store.rows["a"]["status"] == "completed"
    assert store.rows["a"]["title"] == "Buy milk"


def test_delete_requires_confirmation(client: TestClient, store: FakeTaskStore) -> None:
    body = client.delete(f"{API}/tasks/b").json()
    assert body["applied"] is False
    assert body["notifications"] == []
    assert "b" in store.rows

    body = client.delete(f"{API}/tasks/b", params={"confirm": "true"}).json()
    assert body["applied"] is True
    assert board_ids(body["board"]) == ["a", "c"]


def test_notifications_drain(client: TestClient) -> None:
    client.patch(f"{API}/tasks/a", json={"title": "Renamed"})

    drained = client.get(f"{API}/notifications").json()

    assert [n["message"] for n in drained] == ["Task updated successfully"]
    assert client.get(f"{API}/notifications").json() == []


# ---------------------------------------------------------------------------
# attachments and form
# ---------------------------------------------------------------------------


def test_attachment_deletion(client: TestClient, store: FakeTaskStore) -> None:
    store.rows["a"]["attachments"] = [make_attachment("one.txt", "x1"), make_attachment("two.txt", "x2")]

    body = client.delete(f"{API}/tasks/a/attachments/5").json()
    assert body["applied"] is False
    assert body["notifications"] == []

    body = client.delete(f"{API}/tasks/a/attachments/0").json()
    assert body["applied"] is True
    assert [a["name"] for a in store.rows["a"]["attachments"]] == ["two.txt"]

    body = client.delete(f"{API}/tasks/a/attachments/by-id/x2").json()
    assert body["applied"] is True
    assert store.rows["a"]["attachments"] == []


def test_expanded_board_shows_attachments(client: TestClient, store: FakeTaskStore) -> None:
    store.rows["a"]["attachments"] = [make_attachment("one.txt", "x1")]
    client.post(f"{API}/tasks/refresh")

    body = client.get(f"{API}/tasks", params={"expand": "attachments"}).json()

    assert body["items"][0]["attachments"][0]["name"] == "one.txt"
    assert body["items"][0]["comments"] is None


def test_forms(client: TestClient) -> None:
    blank = client.get(f"{API}/tasks/form").json()
    assert blank["due_date"] == date.today().isoformat()
    assert blank["priority"] == 3

    edit = client.get(f"{API}/tasks/b/form").json()
    assert edit["title"] == "Write report"
    assert edit["status"] == "completed"
    assert client.get(f"{API}/tasks/zzz/form").status_code == 404

    captured = client.post(
        f"{API}/tasks/form/attachments",
        json={"form": edit, "files": [{"name": "scan.pdf", "size": 99}]},
    ).json()
    assert [a["name"] for a in captured["attachments"]] == ["scan.pdf"]


# ---------------------------------------------------------------------------
# preferences
# ---------------------------------------------------------------------------


def test_theme_toggle_reaches_cards(client: TestClient, settings: Settings) -> None:
    assert client.post(f"{API}/preferences/theme/toggle").json() == {"theme": "dark"}

    body = client.get(f"{API}/tasks").json()
    assert body["theme"] == "dark"
    assert body["items"][0]["palette"]["background"] == "gray-800"
    assert settings.preferences_path.exists()

    assert client.put(f"{API}/preferences/theme", json={"theme": "light"}).json() == {"theme": "light"}
