"""Task edit form: in-memory field state for creating or editing a task."""

from collections.abc import Iterable
from datetime import date, datetime, timezone
from urllib.parse import quote

import structlog
from pydantic import BaseModel, Field, ValidationError

from taskdeck.exceptions import FormValidationError
from taskdeck.schemas import (
    Attachment,
    Task,
    TaskCreate,
    TaskStatus,
    new_attachment_id,
)

logger = structlog.get_logger()


class SelectedFile(BaseModel):
    """A file picked by the user. Only its metadata is captured."""

    name: str = Field(..., min_length=1)
    size: int = Field(default=0, ge=0)
    content_type: str = ""


class TaskFormData(BaseModel):
    """Every editable field of a task; id, owner, order and timestamps excluded."""

    title: str = ""
    description: str = ""
    status: TaskStatus = "pending"
    due_date: date | None = None
    priority: int = Field(default=3, ge=1, le=5)
    project: str = ""
    labels: list[str] = Field(default_factory=list)
    assigned_to: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)


def local_reference(file: SelectedFile) -> str:
    """A session-local reference for a captured file; not a durable location."""
    return f"blob:taskdeck/{new_attachment_id()}/{quote(file.name)}"


class TaskForm:
    """Controlled form state mirroring the task shape.

    Pre-populated from ``task`` when editing; otherwise defaulted to today's
    date, priority 3, status pending and empty collections. Nothing here
    touches the store: ``submit()`` only produces the payload.
    """

    def __init__(self, task: Task | None = None, *, today: date | None = None):
        self.task_id = task.id if task else None
        if task is not None:
            initial = TaskFormData(
                title=task.title,
                description=task.description,
                status=task.status,
                due_date=task.due_date,
                priority=task.priority if 1 <= task.priority <= 5 else 3,
                project=task.project or "",
                labels=list(task.labels),
                assigned_to=list(task.assigned_to),
                attachments=list(task.attachments),
            )
        else:
            initial = TaskFormData(due_date=today or date.today())
        self._initial = initial
        self.data = initial.model_copy(deep=True)

    @classmethod
    def from_data(cls, data: TaskFormData) -> "TaskForm":
        form = cls()
        form._initial = data.model_copy(deep=True)
        form.data = data.model_copy(deep=True)
        return form

    @property
    def is_editing(self) -> bool:
        return self.task_id is not None

    def set(self, **changes) -> None:
        """Replace individual fields, validating the result."""
        self.data = TaskFormData.model_validate({**self.data.model_dump(), **changes})

    def add_label(self, label: str) -> bool:
        """Append ``label``. Blank or already-present labels are ignored."""
        label = label.strip()
        if not label or label in self.data.labels:
            return False
        self.data.labels.append(label)
        return True

    def remove_label(self, label: str) -> None:
        self.data.labels = [existing for existing in self.data.labels if existing != label]

    def attach_files(self, files: Iterable[SelectedFile]) -> list[Attachment]:
        uploaded_at = datetime.now(timezone.utc)
        added = [
            Attachment(
                id=new_attachment_id(),
                url=local_reference(file),
                name=file.name,
                type=file.content_type,
                size=file.size,
                uploaded_at=uploaded_at,
            )
            for file in files
        ]
        self.data.attachments.extend(added)
        return added

    def remove_attachment(self, index: int) -> None:
        if 0 <= index < len(self.data.attachments):
            del self.data.attachments[index]

    def submit(self) -> TaskCreate:
        """Validate and emit the full payload.

        Raises:
            FormValidationError: title or due date is missing.
        """
        missing = []
        if not self.data.title.strip():
            missing.append("title")
        if self.data.due_date is None:
            missing.append("due_date")
        if missing:
            raise FormValidationError(missing)
        try:
            return TaskCreate.model_validate(self.data.model_dump())
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise FormValidationError(fields) from e

    def cancel(self) -> None:
        """Discard every edit made since the form was opened."""
        self.data = self._initial.model_copy(deep=True)
        logger.debug("Task form cancelled", task_id=self.task_id)
