"""Tasks API endpoints.

Every mutating endpoint returns the notifications its operation raised and
the list as it stands afterwards. Store failures never fail the request:
they come back as ``applied: false`` plus an error notification.
"""

from datetime import date
from typing import Literal

import structlog
from fastapi import APIRouter, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from taskdeck.api.deps import CurrentPreferences, Notifications, TaskList
from taskdeck.exceptions import FormValidationError
from taskdeck.schemas import StatusFilter, TaskUpdate
from taskdeck.services.notification import Notification
from taskdeck.services.preferences import Preferences
from taskdeck.services.presentation import TaskCard, present_task
from taskdeck.services.task_form import SelectedFile, TaskForm, TaskFormData
from taskdeck.services.task_list import TaskListController

router = APIRouter()
logger = structlog.get_logger()

Disclosure = Literal["attachments", "comments"]


class TaskBoardResponse(BaseModel):
    """The filtered, ordered list as rendered cards."""

    items: list[TaskCard]
    total: int
    search: str
    status: str
    state: str
    theme: str


class OperationResponse(BaseModel):
    """Outcome of one user operation."""

    applied: bool
    notifications: list[Notification]
    board: TaskBoardResponse


class ReorderRequest(BaseModel):
    """Drop ``from_id`` onto the position of ``to_id``."""

    from_id: str
    to_id: str


class ReorderResponse(OperationResponse):
    synced: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class AttachmentCapture(BaseModel):
    """Files picked in the form, appended to the form's attachments."""

    form: TaskFormData
    files: list[SelectedFile] = Field(..., min_length=1)


def _board(
    task_list: TaskListController,
    preferences: Preferences,
    expand: list[str] | None = None,
) -> TaskBoardResponse:
    return TaskBoardResponse(
        items=[
            present_task(task, theme=preferences.theme, expand=expand or ())
            for task in task_list.visible()
        ],
        total=len(task_list.tasks),
        search=task_list.query,
        status=task_list.status_filter,
        state=task_list.state.value,
        theme=preferences.theme,
    )


def _operation(
    applied: bool,
    notifications: list[Notification],
    task_list: TaskListController,
    preferences: Preferences,
) -> OperationResponse:
    return OperationResponse(
        applied=applied,
        notifications=notifications,
        board=_board(task_list, preferences),
    )


@router.get("", response_model=TaskBoardResponse)
async def list_tasks(
    task_list: TaskList,
    preferences: CurrentPreferences,
    search: str | None = Query(None, max_length=100),
    status_filter: StatusFilter | None = Query(None, alias="status"),
    expand: list[Disclosure] = Query([]),
) -> TaskBoardResponse:
    """List the current view. Filters given here stick for later responses."""
    task_list.set_filter(query=search, status=status_filter)
    return _board(task_list, preferences, expand)


@router.post("/refresh", response_model=OperationResponse)
async def refresh_tasks(
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
) -> OperationResponse:
    """Reload the list from the store."""
    with notifications.capture() as captured:
        applied = await task_list.load()
    return _operation(applied, captured, task_list, preferences)


@router.post("", response_model=OperationResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskFormData,
    response: Response,
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
) -> OperationResponse:
    """Create a task from submitted form data.

    Answers 201 when the task was stored and 200 with ``applied: false``
    when the store rejected it.
    """
    try:
        payload = TaskForm.from_data(data).submit()
    except FormValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": e.code, "message": e.message, "fields": e.fields},
        ) from e

    with notifications.capture() as captured:
        applied = await task_list.create(payload)
    if not applied:
        response.status_code = status.HTTP_200_OK
    return _operation(applied, captured, task_list, preferences)


@router.post("/reorder", response_model=ReorderResponse)
async def reorder_tasks(
    request: ReorderRequest,
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
) -> ReorderResponse:
    """Move one task onto another's position and persist the new order."""
    with notifications.capture() as captured:
        outcome = await task_list.reorder(request.from_id, request.to_id)
    return ReorderResponse(
        applied=outcome.moved,
        notifications=captured,
        board=_board(task_list, preferences),
        synced=outcome.synced,
        failed=outcome.failed,
    )


@router.get("/form", response_model=TaskFormData)
async def new_task_form(task_list: TaskList) -> TaskFormData:
    """A blank form with defaults for a new task."""
    return TaskForm(today=date.today()).data


@router.post("/form/attachments", response_model=TaskFormData)
async def capture_attachments(request: AttachmentCapture, task_list: TaskList) -> TaskFormData:
    """Record picked files on the form. Nothing is uploaded or persisted."""
    form = TaskForm.from_data(request.form)
    added = form.attach_files(request.files)
    logger.info("Attachments captured", count=len(added))
    return form.data


@router.get("/{task_id}", response_model=TaskCard)
async def get_task(
    task_id: str,
    task_list: TaskList,
    preferences: CurrentPreferences,
    expand: list[Disclosure] = Query([]),
) -> TaskCard:
    task = task_list.get(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return present_task(task, theme=preferences.theme, expand=expand)


@router.get("/{task_id}/form", response_model=TaskFormData)
async def edit_task_form(task_id: str, task_list: TaskList) -> TaskFormData:
    """The form pre-populated from an existing task."""
    task = task_list.get(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return TaskForm(task).data


@router.patch("/{task_id}", response_model=OperationResponse)
async def update_task(
    task_id: str,
    updates: TaskUpdate,
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
) -> OperationResponse:
    """Write the fields present in the request body."""
    with notifications.capture() as captured:
        applied = await task_list.update(task_id, updates)
    return _operation(applied, captured, task_list, preferences)


@router.delete("/{task_id}", response_model=OperationResponse)
async def delete_task(
    task_id: str,
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
    confirm: bool = Query(False, description="The user's answer to the confirmation prompt"),
) -> OperationResponse:
    """Delete a task. Without ``confirm=true`` nothing happens."""
    with notifications.capture() as captured:
        applied = await task_list.delete(task_id, confirm=lambda _task_id: confirm)
    return _operation(applied, captured, task_list, preferences)


@router.delete("/{task_id}/attachments/by-id/{attachment_id}", response_model=OperationResponse)
async def delete_attachment_by_id(
    task_id: str,
    attachment_id: str,
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
) -> OperationResponse:
    with notifications.capture() as captured:
        applied = await task_list.delete_attachment_by_id(task_id, attachment_id)
    return _operation(applied, captured, task_list, preferences)


@router.delete("/{task_id}/attachments/{index}", response_model=OperationResponse)
async def delete_attachment(
    task_id: str,
    index: int,
    task_list: TaskList,
    preferences: CurrentPreferences,
    notifications: Notifications,
) -> OperationResponse:
    """Remove the attachment at ``index``. Out-of-range indexes change nothing."""
    with notifications.capture() as captured:
        applied = await task_list.delete_attachment(task_id, index)
    return _operation(applied, captured, task_list, preferences)
