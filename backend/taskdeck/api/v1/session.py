"""Session endpoints: who is signed in and which screen to show."""

import structlog
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from taskdeck.api.deps import AppSettings, Registry, Sessions
from taskdeck.exceptions import StoreError
from taskdeck.schemas import Identity
from taskdeck.services.session import RemoteSessionProvider, Route, resolve_route

router = APIRouter()
logger = structlog.get_logger()


class IdentityResponse(BaseModel):
    id: str
    email: str


class SessionResponse(BaseModel):
    """Current identity and the screen it implies."""

    identity: IdentityResponse | None
    route: Route


class SessionStart(BaseModel):
    """Start a session from a hosted-auth access token.

    With a local session provider in development, ``user_id`` and ``email``
    may be given instead.
    """

    access_token: str | None = None
    user_id: str | None = None
    email: str | None = None


def _session_response(identity: Identity | None) -> SessionResponse:
    return SessionResponse(
        identity=IdentityResponse(id=identity.id, email=identity.email) if identity else None,
        route=resolve_route(identity),
    )


@router.get("", response_model=SessionResponse)
async def get_session(sessions: Sessions) -> SessionResponse:
    return _session_response(sessions.get_current_session())


@router.post("", response_model=SessionResponse)
async def start_session(
    request: SessionStart,
    sessions: Sessions,
    registry: Registry,
    settings: AppSettings,
) -> SessionResponse:
    """Sign in and load the identity's task list."""
    if isinstance(sessions, RemoteSessionProvider):
        if not request.access_token:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="access_token is required",
            )
        try:
            identity = await sessions.restore(request.access_token)
        except StoreError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Auth service unavailable: {e.message}",
            ) from e
        if identity is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid access token",
            )
    else:
        if settings.environment != "development":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Local sign-in is only available in development",
            )
        if not request.user_id or not request.email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="user_id and email are required",
            )
        identity = Identity(id=request.user_id, email=request.email)
        sessions.sign_in(identity)

    await registry.get(identity)
    return _session_response(identity)


@router.post("/sign-out", response_model=SessionResponse)
async def sign_out(sessions: Sessions) -> SessionResponse:
    await sessions.sign_out()
    return _session_response(None)
