"""Task store contract and backend selection.

A ``TaskStore`` is bound to one identity: every call is scoped to that
owner. A ``TaskStoreBackend`` hands out stores per identity and owns the
shared connection resources (HTTP client or database engine).
"""

from typing import Any, Protocol

from taskdeck.schemas import Attachment, Identity, Task


class TaskStore(Protocol):
    """CRUD and ordering persistence over one identity's task records."""

    owner_id: str

    async def list_tasks(self) -> list[Task]:
        """Return every task of the owner, ascending by ``order``."""
        ...

    async def insert_task(self, record: dict[str, Any]) -> None: ...

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> None: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def get_attachments(self, task_id: str) -> list[Attachment]: ...

    async def set_attachments(self, task_id: str, attachments: list[Attachment]) -> None: ...


class TaskStoreBackend(Protocol):
    """Factory for identity-scoped task stores."""

    name: str

    def for_identity(self, identity: Identity) -> TaskStore: ...

    async def ping(self) -> None:
        """Raise ``StoreError`` if the backend is unreachable."""
        ...

    async def close(self) -> None: ...


__all__ = ["TaskStore", "TaskStoreBackend"]
