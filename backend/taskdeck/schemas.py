"""Domain models shared by the store, the controller and the API."""

from datetime import date, datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

TaskStatus = Literal["pending", "in-progress", "completed"]
StatusFilter = Literal["all", "pending", "in-progress", "completed"]
Theme = Literal["light", "dark"]

TASK_STATUSES: tuple[str, ...] = ("pending", "in-progress", "completed")


def new_attachment_id() -> str:
    return uuid4().hex


def parse_due_date(value: Any) -> Any:
    """Accept full ISO timestamps for due dates and keep only the date part."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


def unique_labels(labels: list[str]) -> list[str]:
    """Drop blank and repeated labels, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for label in labels:
        label = label.strip()
        if label and label not in seen:
            seen.add(label)
            result.append(label)
    return result


class Identity(BaseModel):
    """Authenticated user as supplied by the session provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    access_token: str | None = Field(default=None, repr=False, exclude=True)


class Attachment(BaseModel):
    """File metadata embedded in a task."""

    id: str | None = None
    url: str
    name: str = ""
    type: str = ""
    size: int = 0
    uploaded_at: datetime

    @property
    def display_name(self) -> str:
        return self.name or self.url


class Comment(BaseModel):
    """Comment embedded in a task. Append-only."""

    id: str
    user_id: str
    user_email: str
    content: str
    created_at: datetime


class Task(BaseModel):
    """A task record as held by the store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str = ""
    status: TaskStatus = "pending"
    due_date: date
    priority: int = 3
    project: str = ""
    labels: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    assigned_to: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    order: int = 0
    user_id: str
    created_at: datetime | None = None
    theme: Theme = "light"

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("description", "project", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("labels", "attachments", "assigned_to", "comments", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date_field(cls, v: Any) -> Any:
        return parse_due_date(v)


class TaskCreate(BaseModel):
    """Payload for a new task, as emitted by the edit form."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    status: TaskStatus = "pending"
    due_date: date
    priority: int = Field(default=3, ge=1, le=5)
    project: str = ""
    labels: list[str] = Field(default_factory=list)
    assigned_to: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("labels")
    @classmethod
    def dedupe_labels(cls, v: list[str]) -> list[str]:
        return unique_labels(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date_field(cls, v: Any) -> Any:
        return parse_due_date(v)


class TaskUpdate(BaseModel):
    """Partial update of a task. Only fields explicitly set are written."""

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    due_date: date | None = None
    priority: int | None = Field(None, ge=1, le=5)
    project: str | None = None
    labels: list[str] | None = None
    assigned_to: list[str] | None = None
    attachments: list[Attachment] | None = None

    @field_validator("labels")
    @classmethod
    def dedupe_labels(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else unique_labels(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date_field(cls, v: Any) -> Any:
        return parse_due_date(v)

