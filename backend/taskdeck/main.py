"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from taskdeck.api import router as api_router
from taskdeck.config import Settings, get_settings
from taskdeck.logging_setup import configure_logging
from taskdeck.middleware.logging import LoggingMiddleware
from taskdeck.middleware.request_id import RequestIDMiddleware
from taskdeck.services.notification import NotificationService
from taskdeck.services.preferences import PreferenceStore
from taskdeck.services.session import InMemorySessionProvider, RemoteSessionProvider
from taskdeck.services.task_list import TaskListRegistry
from taskdeck.store import TaskStoreBackend
from taskdeck.store.rest import RestStoreBackend
from taskdeck.store.sql import SqlStoreBackend

logger = structlog.get_logger()


def build_backend(settings: Settings) -> TaskStoreBackend:
    """Create the task store backend selected by ``store_backend``."""
    if settings.store_backend == "sql":
        return SqlStoreBackend.from_settings(settings)
    return RestStoreBackend.from_settings(settings)


def build_session_provider(backend: TaskStoreBackend) -> InMemorySessionProvider:
    """Hosted auth goes with the hosted store; otherwise sessions are local."""
    if isinstance(backend, RestStoreBackend):
        return RemoteSessionProvider(backend.client, api_key=backend.api_key)
    return InMemorySessionProvider()


def create_app(
    settings: Settings | None = None,
    *,
    backend: TaskStoreBackend | None = None,
    sessions: InMemorySessionProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Wire the store, session provider and task lists for the app's lifetime."""
        configure_logging(settings.log_level, json=settings.environment != "development")

        store_backend = backend or build_backend(settings)
        session_provider = sessions or build_session_provider(store_backend)
        preference_store = PreferenceStore(settings.preferences_path, settings.default_theme)
        preferences = preference_store.load()
        notifications = NotificationService(settings.notification_history)
        registry = TaskListRegistry(store_backend, notifications, preferences)
        registry.bind(session_provider)

        app.state.settings = settings
        app.state.backend = store_backend
        app.state.sessions = session_provider
        app.state.preference_store = preference_store
        app.state.preferences = preferences
        app.state.notifications = notifications
        app.state.registry = registry

        logger.info(
            "Starting TaskDeck API",
            version=settings.app_version,
            store=store_backend.name,
            theme=preferences.theme,
        )

        yield

        logger.info("Shutting down TaskDeck API")
        registry.unbind()
        await store_backend.close()
        logger.info("Task store closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Single-user task management with drag-to-reorder lists",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Last added is first executed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint for load balancers."""
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
