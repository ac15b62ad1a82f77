"""Middleware package."""

from taskdeck.middleware.logging import LoggingMiddleware
from taskdeck.middleware.request_id import RequestIDMiddleware

__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
