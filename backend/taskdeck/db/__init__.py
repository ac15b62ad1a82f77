"""Database package."""

from taskdeck.db.base import Base
from taskdeck.db.session import create_engine, create_session_factory

__all__ = ["Base", "create_engine", "create_session_factory"]
