"""Ordered task list: local view of one identity's tasks.

The controller keeps a cached copy of the owner's tasks. The store is the
source of truth and the cache is reloaded after every successful mutation.
Reordering is the exception: the new order is applied locally before any
persistence call is issued, and the per-task ``order`` writes then run
concurrently without rollback. Operations are never serialized against each
other; a second reorder may start while the first one's writes are still
outstanding.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from taskdeck.exceptions import FetchError, MutationError, OrderSyncError, StoreError
from taskdeck.schemas import Identity, Task, TaskCreate, TaskUpdate
from taskdeck.services.notification import NotificationService
from taskdeck.services.preferences import Preferences
from taskdeck.services.session import InMemorySessionProvider
from taskdeck.store import TaskStore, TaskStoreBackend

logger = structlog.get_logger()

Confirm = Callable[[str], bool | Awaitable[bool]]


class ListState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    REORDERING = "reordering"


def filter_tasks(tasks: Sequence[Task], query: str = "", status: str = "all") -> list[Task]:
    """Tasks matching ``status`` ("all" matches any) whose title or
    description contains ``query``, case-insensitively. Order is preserved."""
    needle = query.lower()
    return [
        task
        for task in tasks
        if (status == "all" or task.status == status)
        and (not needle or needle in task.title.lower() or needle in task.description.lower())
    ]


def move_task(tasks: Sequence[Task], from_id: str, to_id: str) -> list[Task]:
    """Move ``from_id`` to the position currently held by ``to_id``.

    Items in between shift by one place; this is a move, not a swap. Every
    task in the result gets ``order`` equal to its new index. Moving a task
    onto itself returns the input unchanged. Raises ``LookupError`` if
    either id is absent.
    """
    if from_id == to_id:
        return list(tasks)

    ids = [task.id for task in tasks]
    try:
        old_index = ids.index(from_id)
        new_index = ids.index(to_id)
    except ValueError as e:
        raise LookupError(f"task not in list: {from_id if from_id not in ids else to_id}") from e

    moved = list(tasks)
    moved.insert(new_index, moved.pop(old_index))
    return [task.model_copy(update={"order": index}) for index, task in enumerate(moved)]


@dataclass
class ReorderOutcome:
    """Result of one reorder: what moved locally and how persistence went."""

    moved: bool = False
    synced: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class TaskListController:
    """Holds one identity's ordered tasks and mediates every change to them."""

    def __init__(
        self,
        identity: Identity,
        store: TaskStore,
        notifications: NotificationService,
        preferences: Preferences,
    ):
        self.identity = identity
        self.store = store
        self.notifications = notifications
        self.preferences = preferences
        self.query = ""
        self.status_filter = "all"
        self._tasks: list[Task] = []
        self._loading = 0
        self._syncing = 0
        # Ids whose last order write failed; rewritten on the next reorder
        self._unsynced: set[str] = set()

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def state(self) -> ListState:
        if self._loading:
            return ListState.LOADING
        if self._syncing:
            return ListState.REORDERING
        return ListState.IDLE

    def get(self, task_id: str) -> Task | None:
        return next((task for task in self._tasks if task.id == task_id), None)

    def set_filter(self, query: str | None = None, status: str | None = None) -> None:
        if query is not None:
            self.query = query
        if status is not None:
            self.status_filter = status

    def visible(self) -> list[Task]:
        """The filtered view. Never mutates the underlying list."""
        return filter_tasks(self._tasks, self.query, self.status_filter)

    async def load(self) -> bool:
        """Replace the local list with the store's, ascending by order.

        On failure the previous list is kept.
        """
        self._loading += 1
        try:
            tasks = await self.store.list_tasks()
        except StoreError as e:
            error = FetchError(e.message)
            logger.error("Error fetching tasks", user_id=self.identity.id, error=error.message)
            self.notifications.error("Failed to fetch tasks", operation="load", error=error)
            return False
        finally:
            self._loading -= 1

        self._tasks = sorted(tasks, key=lambda task: task.order)
        self._unsynced.clear()
        logger.debug("Tasks loaded", user_id=self.identity.id, count=len(self._tasks))
        return True

    async def reorder(self, from_id: str, to_id: str) -> ReorderOutcome:
        """Move ``from_id`` onto ``to_id``'s position and persist the new order.

        The local list changes before the first write is issued. Each task
        whose cached order differs from its new index, or whose previous
        order write failed, gets its own write; failures are collected and
        reported once for the whole reorder.
        """
        if from_id == to_id:
            return ReorderOutcome()

        try:
            reordered = move_task(self._tasks, from_id, to_id)
        except LookupError as e:
            logger.warning("Reorder ignored", from_id=from_id, to_id=to_id, reason=str(e))
            return ReorderOutcome()

        previous = {task.id: task.order for task in self._tasks}
        self._tasks = reordered
        changed = [
            task
            for task in reordered
            if previous.get(task.id) != task.order or task.id in self._unsynced
        ]

        self._syncing += 1
        try:
            results = await asyncio.gather(
                *(self._persist_order(task) for task in changed),
                return_exceptions=True,
            )
        finally:
            self._syncing -= 1

        outcome = ReorderOutcome(moved=True)
        for task, result in zip(changed, results):
            if isinstance(result, OrderSyncError):
                logger.error("Error updating task order", task_id=task.id, error=result.message)
                outcome.failed.append(task.id)
                self._unsynced.add(task.id)
            elif isinstance(result, BaseException):
                raise result
            else:
                outcome.synced.append(task.id)
                self._unsynced.discard(task.id)

        if outcome.failed:
            self.notifications.error(
                "Failed to update task order",
                operation="reorder",
                error=OrderSyncError(
                    outcome.failed[0],
                    f"{len(outcome.failed)} of {len(changed)} order updates failed",
                ),
            )
        logger.info(
            "Tasks reordered",
            from_id=from_id,
            to_id=to_id,
            synced=len(outcome.synced),
            failed=len(outcome.failed),
        )
        return outcome

    async def _persist_order(self, task: Task) -> None:
        try:
            await self.store.update_task(task.id, {"order": task.order})
        except StoreError as e:
            raise OrderSyncError(task.id, e.message) from e

    async def create(self, payload: TaskCreate) -> bool:
        """Insert a new task at the end of the list, then reload.

        Creation is not optimistic: nothing is added locally until the
        reload after a successful insert.
        """
        record: dict[str, Any] = {
            **payload.model_dump(mode="json"),
            "user_id": self.identity.id,
            "order": len(self._tasks),
            "theme": self.preferences.theme,
        }
        try:
            await self.store.insert_task(record)
        except StoreError as e:
            return self._mutation_failed("create", "Failed to create task", e)

        logger.info("Task created", user_id=self.identity.id, order=record["order"])
        self.notifications.success("Task created successfully", operation="create")
        await self.load()
        return True

    async def update(self, task_id: str, payload: TaskUpdate) -> bool:
        changes = payload.model_dump(mode="json", exclude_unset=True)
        try:
            await self.store.update_task(task_id, changes)
        except StoreError as e:
            return self._mutation_failed("update", "Failed to update task", e, task_id)

        logger.info("Task updated", task_id=task_id, fields=sorted(changes))
        self.notifications.success("Task updated successfully", operation="update", task_id=task_id)
        await self.load()
        return True

    async def delete(self, task_id: str, confirm: Confirm) -> bool:
        """Delete a task once ``confirm`` agrees. Declining changes nothing."""
        answer = confirm(task_id)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.info("Task deletion declined", task_id=task_id)
            return False

        try:
            await self.store.delete_task(task_id)
        except StoreError as e:
            return self._mutation_failed("delete", "Failed to delete task", e, task_id)

        logger.info("Task deleted", task_id=task_id)
        self.notifications.success("Task deleted successfully", operation="delete", task_id=task_id)
        await self.load()
        return True

    async def delete_attachment(self, task_id: str, index: int) -> bool:
        """Remove the attachment at ``index`` from the stored sequence.

        An index outside the sequence is a no-op: nothing is written and no
        notification is raised.
        """
        try:
            attachments = await self.store.get_attachments(task_id)
        except StoreError as e:
            return self._mutation_failed("delete_attachment", "Failed to delete attachment", e, task_id)

        if not 0 <= index < len(attachments):
            logger.warning(
                "Attachment index out of range",
                task_id=task_id,
                index=index,
                count=len(attachments),
            )
            return False

        remaining = attachments[:index] + attachments[index + 1:]
        try:
            await self.store.set_attachments(task_id, remaining)
        except StoreError as e:
            return self._mutation_failed("delete_attachment", "Failed to delete attachment", e, task_id)

        logger.info("Attachment deleted", task_id=task_id, index=index)
        self.notifications.success(
            "Attachment deleted successfully",
            operation="delete_attachment",
            task_id=task_id,
        )
        await self.load()
        return True

    async def delete_attachment_by_id(self, task_id: str, attachment_id: str) -> bool:
        """Remove an attachment by its stable id rather than its position."""
        try:
            attachments = await self.store.get_attachments(task_id)
        except StoreError as e:
            return self._mutation_failed("delete_attachment", "Failed to delete attachment", e, task_id)

        remaining = [a for a in attachments if a.id != attachment_id]
        if len(remaining) == len(attachments):
            logger.warning("Attachment not found", task_id=task_id, attachment_id=attachment_id)
            return False

        try:
            await self.store.set_attachments(task_id, remaining)
        except StoreError as e:
            return self._mutation_failed("delete_attachment", "Failed to delete attachment", e, task_id)

        logger.info("Attachment deleted", task_id=task_id, attachment_id=attachment_id)
        self.notifications.success(
            "Attachment deleted successfully",
            operation="delete_attachment",
            task_id=task_id,
        )
        await self.load()
        return True

    def _mutation_failed(
        self,
        operation: str,
        message: str,
        cause: StoreError,
        task_id: str | None = None,
    ) -> bool:
        error = MutationError(operation, cause.message, task_id=task_id)
        logger.error("Mutation failed", operation=operation, task_id=task_id, error=error.message)
        self.notifications.error(message, operation=operation, error=error, task_id=task_id)
        return False


class TaskListRegistry:
    """One controller per signed-in identity.

    Controllers are created and loaded on first use and dropped when the
    session moves away from their identity.
    """

    def __init__(
        self,
        backend: TaskStoreBackend,
        notifications: NotificationService,
        preferences: Preferences,
    ):
        self.backend = backend
        self.notifications = notifications
        self.preferences = preferences
        self._controllers: dict[str, TaskListController] = {}
        self._unsubscribe: Callable[[], None] | None = None

    def bind(self, sessions: InMemorySessionProvider) -> None:
        self._unsubscribe = sessions.on_session_change(self._on_session_change)

    def unbind(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_session_change(self, identity: Identity | None) -> None:
        stale = [uid for uid in self._controllers if identity is None or uid != identity.id]
        for uid in stale:
            del self._controllers[uid]
            logger.debug("Task list dropped", user_id=uid)

    async def get(self, identity: Identity) -> TaskListController:
        controller = self._controllers.get(identity.id)
        if controller is not None and controller.identity != identity:
            # Same user, new credentials: keep the list, swap the store
            controller.identity = identity
            controller.store = self.backend.for_identity(identity)
            logger.debug("Task list rebound", user_id=identity.id)
        if controller is None:
            controller = TaskListController(
                identity,
                self.backend.for_identity(identity),
                self.notifications,
                self.preferences,
            )
            self._controllers[identity.id] = controller
            await controller.load()
        return controller
