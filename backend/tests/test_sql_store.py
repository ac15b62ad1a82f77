# tests/test_sql_store.py

from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from taskdeck.exceptions import StoreError
from taskdeck.models.task import TaskRecord
from taskdeck.schemas import Identity
from taskdeck.store.sql import SqlTaskStore, _writable


class UnreachableDatabase:
    """Session factory whose every session fails to connect."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self):
        self.calls += 1
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


def test_writable_drops_unknown_columns_and_parses_dates() -> None:
    values = _writable({"title": "T", "id": "x", "user_id": "y", "due_date": "2030-01-02"})
    assert values == {"title": "T", "due_date": date(2030, 1, 2)}


@pytest.mark.asyncio
async def test_non_uuid_owner_is_rejected_before_querying() -> None:
    factory = UnreachableDatabase()
    store = SqlTaskStore(factory, Identity(id="not-a-uuid", email="u@example.com"))

    with pytest.raises(StoreError, match="invalid id"):
        await store.list_tasks()
    assert factory.calls == 0


@pytest.mark.asyncio
async def test_database_errors_become_store_errors() -> None:
    store = SqlTaskStore(UnreachableDatabase(), Identity(id=str(uuid4()), email="u@example.com"))
    task_id = str(uuid4())

    with pytest.raises(StoreError) as exc_info:
        await store.update_task(task_id, {"order": 1})
    assert exc_info.value.operation == "update_task"

    with pytest.raises(StoreError):
        await store.get_attachments(task_id)


@pytest.mark.asyncio
async def test_empty_update_is_skipped() -> None:
    factory = UnreachableDatabase()
    store = SqlTaskStore(factory, Identity(id=str(uuid4()), email="u@example.com"))

    await store.update_task(str(uuid4()), {"created_at": "ignored"})

    assert factory.calls == 0


class StubResult:
    def __init__(self, records=(), scalar=None) -> None:
        self.records = list(records)
        self.scalar = scalar

    def scalars(self) -> "StubResult":
        return self

    def all(self) -> list:
        return self.records

    def scalar_one_or_none(self):
        return self.scalar


class StubSession:
    """Async session returning one canned result for every statement."""

    def __init__(self, result: StubResult) -> None:
        self.result = result

    async def __aenter__(self) -> "StubSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def execute(self, statement) -> StubResult:
        return self.result


def stub_store(result: StubResult) -> SqlTaskStore:
    return SqlTaskStore(lambda: StubSession(result), Identity(id=str(uuid4()), email="u@example.com"))


@pytest.mark.asyncio
async def test_rows_the_models_reject_become_store_errors() -> None:
    record = TaskRecord(id=uuid4(), user_id=uuid4(), title="Broken", status="pending", due_date=None)

    with pytest.raises(StoreError) as exc_info:
        await stub_store(StubResult(records=[record])).list_tasks()

    assert exc_info.value.operation == "list_tasks"
    assert "malformed" in exc_info.value.message


@pytest.mark.asyncio
async def test_attachments_without_timestamp_become_store_errors() -> None:
    store = stub_store(StubResult(scalar=[{"url": "blob:x", "name": "x.txt"}]))

    with pytest.raises(StoreError, match="get_attachments"):
        await store.get_attachments(str(uuid4()))
