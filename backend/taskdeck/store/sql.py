"""Task store over a PostgreSQL ``tasks`` table with SQLAlchemy."""

from datetime import date
from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskdeck.config import Settings
from taskdeck.db.session import check_connection, create_engine, create_session_factory
from taskdeck.exceptions import StoreError
from taskdeck.models.task import TaskRecord
from taskdeck.schemas import Attachment, Identity, Task

logger = structlog.get_logger()

WRITABLE_COLUMNS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "project",
        "labels",
        "attachments",
        "assigned_to",
        "comments",
        "order",
        "theme",
    }
)


def _as_uuid(operation: str, value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as e:
        raise StoreError(operation, f"invalid id: {value!r}") from e


def _malformed(operation: str, error: Exception) -> StoreError:
    logger.error("Task store returned malformed data", operation=operation, error=str(error))
    return StoreError(operation, f"malformed row: {error}")


def _writable(changes: dict[str, Any]) -> dict[str, Any]:
    """Keep known columns; JSON-encoded due dates become ``date`` objects."""
    values = {k: v for k, v in changes.items() if k in WRITABLE_COLUMNS}
    if isinstance(values.get("due_date"), str):
        values["due_date"] = date.fromisoformat(values["due_date"])
    return values


class SqlTaskStore:
    """Identity-scoped task store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], identity: Identity):
        self.session_factory = session_factory
        self.owner_id = identity.id

    def _owner(self, operation: str) -> UUID:
        return _as_uuid(operation, self.owner_id)

    async def list_tasks(self) -> list[Task]:
        owner = self._owner("list_tasks")
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TaskRecord)
                    .where(TaskRecord.user_id == owner)
                    .order_by(TaskRecord.order.asc())
                )
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Task store error", operation="list_tasks", error=str(e))
            raise StoreError("list_tasks", str(e)) from e
        try:
            return [Task.model_validate(record.to_dict()) for record in records]
        except ValidationError as e:
            raise _malformed("list_tasks", e) from e

    async def insert_task(self, record: dict[str, Any]) -> None:
        owner = self._owner("insert_task")
        try:
            async with self.session_factory() as session:
                session.add(TaskRecord(**_writable(record), user_id=owner))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Task store error", operation="insert_task", error=str(e))
            raise StoreError("insert_task", str(e)) from e

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> None:
        await self._update("update_task", task_id, _writable(changes))

    async def _update(self, operation: str, task_id: str, values: dict[str, Any]) -> None:
        owner = self._owner(operation)
        task_uuid = _as_uuid(operation, task_id)
        if not values:
            return
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(TaskRecord)
                    .where(TaskRecord.id == task_uuid, TaskRecord.user_id == owner)
                    .values(**values)
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Task store error", operation=operation, task_id=task_id, error=str(e))
            raise StoreError(operation, str(e)) from e

    async def delete_task(self, task_id: str) -> None:
        owner = self._owner("delete_task")
        task_uuid = _as_uuid("delete_task", task_id)
        try:
            async with self.session_factory() as session:
                await session.execute(
                    delete(TaskRecord).where(
                        TaskRecord.id == task_uuid,
                        TaskRecord.user_id == owner,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Task store error", operation="delete_task", task_id=task_id, error=str(e))
            raise StoreError("delete_task", str(e)) from e

    async def get_attachments(self, task_id: str) -> list[Attachment]:
        owner = self._owner("get_attachments")
        task_uuid = _as_uuid("get_attachments", task_id)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TaskRecord.attachments).where(
                        TaskRecord.id == task_uuid,
                        TaskRecord.user_id == owner,
                    )
                )
                rows = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Task store error", operation="get_attachments", task_id=task_id, error=str(e))
            raise StoreError("get_attachments", str(e)) from e
        if rows is None:
            raise StoreError("get_attachments", f"task {task_id} not found", status_code=404)
        try:
            return [Attachment.model_validate(row) for row in rows]
        except (TypeError, ValidationError) as e:
            raise _malformed("get_attachments", e) from e

    async def set_attachments(self, task_id: str, attachments: list[Attachment]) -> None:
        await self._update(
            "set_attachments",
            task_id,
            {"attachments": [a.model_dump(mode="json") for a in attachments]},
        )


class SqlStoreBackend:
    """Hands out ``SqlTaskStore`` instances sharing one engine."""

    name = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlStoreBackend":
        return cls(create_engine(settings))

    def for_identity(self, identity: Identity) -> SqlTaskStore:
        return SqlTaskStore(self.session_factory, identity)

    async def ping(self) -> None:
        try:
            await check_connection(self.engine)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError("ping", str(e)) from e

    async def close(self) -> None:
        await self.engine.dispose()
