"""TaskDeck: single-user task management service."""

__version__ = "0.1.0"
