"""Rendering of one task as a card for the list view."""

from collections.abc import Collection
from datetime import date, datetime, time, timezone

from pydantic import BaseModel

from taskdeck.schemas import Task, Theme


class Badge(BaseModel):
    label: str
    color: str


class Palette(BaseModel):
    background: str
    text: str
    border: str


class AttachmentView(BaseModel):
    index: int
    id: str | None
    name: str
    url: str
    delete_url: str


class CommentView(BaseModel):
    id: str
    author: str
    posted: str
    content: str


class TaskActions(BaseModel):
    """Intents the card exposes upward. The card itself persists nothing."""

    edit: str
    delete: str


class TaskCard(BaseModel):
    id: str
    drag_id: str
    title: str
    project: str
    description: str
    status: str
    status_badge: Badge
    priority: int
    priority_badge: Badge
    labels: list[str]
    due_date: date
    due_label: str
    is_overdue: bool
    attachment_count: int
    comment_count: int
    attachments: list[AttachmentView] | None = None
    comments: list[CommentView] | None = None
    palette: Palette
    actions: TaskActions


PRIORITY_BADGES: dict[int, Badge] = {
    1: Badge(label="Low", color="gray"),
    2: Badge(label="Medium-Low", color="blue"),
    3: Badge(label="Medium", color="yellow"),
    4: Badge(label="Medium-High", color="orange"),
    5: Badge(label="High", color="red"),
}
DEFAULT_PRIORITY_BADGE = Badge(label="Medium", color="gray")

STATUS_COLORS: dict[str, str] = {
    "completed": "green",
    "in-progress": "yellow",
    "pending": "gray",
}

PALETTES: dict[str, Palette] = {
    "light": Palette(background="white", text="gray-900", border="gray-200"),
    "dark": Palette(background="gray-800", text="white", border="gray-700"),
}


def priority_badge(priority: int) -> Badge:
    return PRIORITY_BADGES.get(priority, DEFAULT_PRIORITY_BADGE)


def status_badge(status: str) -> Badge:
    return Badge(label=status, color=STATUS_COLORS.get(status, "gray"))


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    """Due date strictly in the past and the task is not completed.

    The due date counts from midnight UTC of that day.
    """
    if task.status == "completed":
        return False
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return datetime.combine(task.due_date, time.min, tzinfo=timezone.utc) < now


def format_due_date(value: date) -> str:
    """``Oct 19, 2026``"""
    return f"{value:%b} {value.day}, {value.year}"


def format_comment_time(value: datetime) -> str:
    """``Oct 19, 14:05``"""
    return f"{value:%b} {value.day}, {value:%H:%M}"


def present_task(
    task: Task,
    *,
    theme: Theme = "light",
    now: datetime | None = None,
    expand: Collection[str] = (),
    base_url: str = "/api/v1/tasks",
) -> TaskCard:
    """Build the card for ``task``.

    ``expand`` opens the attachment and/or comment disclosures; closed
    disclosures only report counts.
    """
    task_url = f"{base_url}/{task.id}"

    attachments = None
    if "attachments" in expand:
        attachments = [
            AttachmentView(
                index=index,
                id=attachment.id,
                name=attachment.display_name,
                url=attachment.url,
                delete_url=f"{task_url}/attachments/{index}",
            )
            for index, attachment in enumerate(task.attachments)
        ]

    comments = None
    if "comments" in expand:
        comments = [
            CommentView(
                id=comment.id,
                author=comment.user_email,
                posted=format_comment_time(comment.created_at),
                content=comment.content,
            )
            for comment in task.comments
        ]

    return TaskCard(
        id=task.id,
        drag_id=task.id,
        title=task.title,
        project=task.project,
        description=task.description,
        status=task.status,
        status_badge=status_badge(task.status),
        priority=task.priority,
        priority_badge=priority_badge(task.priority),
        labels=list(task.labels),
        due_date=task.due_date,
        due_label=format_due_date(task.due_date),
        is_overdue=is_overdue(task, now),
        attachment_count=len(task.attachments),
        comment_count=len(task.comments),
        attachments=attachments,
        comments=comments,
        palette=PALETTES[theme],
        actions=TaskActions(edit=task_url, delete=task_url),
    )
