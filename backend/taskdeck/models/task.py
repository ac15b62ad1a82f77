"""Task table model."""

from datetime import date
from uuid import UUID

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from taskdeck.db.base import Base, CreatedAtMixin, UUIDMixin


class TaskRecord(Base, UUIDMixin, CreatedAtMixin):
    """One user's task row. Attachments and comments are embedded as JSON."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )  # pending, in-progress, completed
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=3)  # 1-5
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    project: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    labels: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    attachments: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    assigned_to: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    comments: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    # Display rank within the owner's list
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    user_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    theme: Mapped[str] = mapped_column(String(10), nullable=False, default="light")
