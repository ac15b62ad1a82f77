"""TaskDeck exceptions.

Store implementations raise ``StoreError``. The task list controller
translates store failures into the user-facing taxonomy (``FetchError``,
``MutationError``, ``OrderSyncError``), logs them and raises exactly one
notification per operation attempt. None of them is fatal.
"""

from typing import Optional


class TaskDeckError(Exception):
    """Base exception for TaskDeck errors."""

    def __init__(self, message: str, code: str = "TASKDECK_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class StoreError(TaskDeckError):
    """A call to the task store failed.

    Raised for transport failures, non-success responses and database
    errors alike, so callers never see the backend's own exception types.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        self.operation = operation
        self.status_code = status_code
        super().__init__(
            message=f"[{operation}] {message}",
            code="STORE_ERROR",
        )


class FetchError(TaskDeckError):
    """Listing the identity's tasks failed."""

    def __init__(self, message: str):
        super().__init__(message=message, code="FETCH_FAILED")


class MutationError(TaskDeckError):
    """A create, update, delete or attachment update failed."""

    def __init__(self, operation: str, message: str, task_id: Optional[str] = None):
        self.operation = operation
        self.task_id = task_id
        super().__init__(message=message, code="MUTATION_FAILED")


class OrderSyncError(TaskDeckError):
    """Persisting one task's new order after a reorder failed.

    The optimistic local order is kept; the next successful load
    reconciles with whatever the store holds.
    """

    def __init__(self, task_id: str, message: str):
        self.task_id = task_id
        super().__init__(message=message, code="ORDER_SYNC_FAILED")


class FormValidationError(TaskDeckError):
    """The task form was submitted with required fields missing."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(
            message=f"Missing required fields: {', '.join(fields)}",
            code="FORM_INVALID",
        )
