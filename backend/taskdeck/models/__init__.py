"""SQLAlchemy models package."""

from taskdeck.models.task import TaskRecord

__all__ = ["TaskRecord"]
