# tests/test_presentation.py

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from taskdeck.schemas import Task
from taskdeck.services.presentation import (
    PALETTES,
    format_comment_time,
    format_due_date,
    is_overdue,
    present_task,
    priority_badge,
    status_badge,
)

from .fakes import make_attachment, make_task

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def task(**fields) -> Task:
    return Task.model_validate(make_task("t1", "Card", 0, **fields))


@pytest.mark.parametrize(
    ("priority", "label", "color"),
    [
        (1, "Low", "gray"),
        (2, "Medium-Low", "blue"),
        (3, "Medium", "yellow"),
        (4, "Medium-High", "orange"),
        (5, "High", "red"),
        (0, "Medium", "gray"),
        (9, "Medium", "gray"),
    ],
)
def test_priority_badge(priority: int, label: str, color: str) -> None:
    badge = priority_badge(priority)
    assert (badge.label, badge.color) == (label, color)


def test_status_badge_colors() -> None:
    assert status_badge("completed").color == "green"
    assert status_badge("in-progress").color == "yellow"
    assert status_badge("pending").color == "gray"
    assert status_badge("pending").label == "pending"


def test_overdue_when_due_before_now_and_not_completed() -> None:
    assert is_overdue(task(due_date="2026-10-18"), NOW) is True
    # Midnight UTC of today has already passed at noon
    assert is_overdue(task(due_date="2026-10-19"), NOW) is True
    assert is_overdue(task(due_date="2026-10-20"), NOW) is False


def test_completed_task_is_never_overdue() -> None:
    assert is_overdue(task(due_date="2020-01-01", status="completed"), NOW) is False


def test_naive_now_is_treated_as_utc() -> None:
    assert is_overdue(task(due_date="2026-10-18"), datetime(2026, 10, 19, 0, 0)) is True


def test_date_formats() -> None:
    assert format_due_date(date(2026, 10, 9)) == "Oct 9, 2026"
    assert format_comment_time(datetime(2026, 3, 5, 14, 5)) == "Mar 5, 14:05"


def test_card_without_disclosures_reports_counts_only() -> None:
    card = present_task(
        task(
            priority=5,
            labels=["home", "urgent"],
            attachments=[make_attachment("a.txt", "x1")],
        ),
        now=NOW,
    )

    assert card.drag_id == "t1"
    assert card.priority_badge.label == "High"
    assert card.labels == ["home", "urgent"]
    assert card.due_label == "Jan 1, 2030"
    assert card.is_overdue is False
    assert card.attachment_count == 1
    assert card.comment_count == 0
    assert card.attachments is None
    assert card.comments is None
    assert card.actions.edit == "/api/v1/tasks/t1"
    assert card.palette == PALETTES["light"]


def test_card_expanded_lists_attachments_and_comments() -> None:
    comment = {
        "id": "c1",
        "user_id": "user-2",
        "user_email": "friend@example.com",
        "content": "Looks good",
        "created_at": "2026-10-19T14:05:00+00:00",
    }
    card = present_task(
        task(
            attachments=[make_attachment("a.txt", "x1"), make_attachment("", None)],
            comments=[comment],
        ),
        theme="dark",
        now=NOW,
        expand=("attachments", "comments"),
    )

    assert [a.index for a in card.attachments] == [0, 1]
    assert card.attachments[0].name == "a.txt"
    # Unnamed attachments fall back to their URL
    assert card.attachments[1].name == card.attachments[1].url
    assert card.attachments[1].delete_url == "/api/v1/tasks/t1/attachments/1"
    assert card.comments[0].author == "friend@example.com"
    assert card.comments[0].posted == "Oct 19, 14:05"
    assert card.palette == PALETTES["dark"]
