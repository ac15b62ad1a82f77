"""Session provider: the current authenticated identity and its changes."""

from collections.abc import Callable
from typing import Literal

import httpx
import structlog

from taskdeck.exceptions import StoreError
from taskdeck.schemas import Identity

logger = structlog.get_logger()

SessionListener = Callable[[Identity | None], None]
Route = Literal["tasks", "auth"]


def resolve_route(identity: Identity | None) -> Route:
    """The visible screen is a pure function of whether anyone is signed in."""
    return "tasks" if identity is not None else "auth"


class InMemorySessionProvider:
    """Holds the process's one session and notifies listeners on change."""

    def __init__(self, identity: Identity | None = None):
        self._identity = identity
        self._listeners: list[SessionListener] = []

    def get_current_session(self) -> Identity | None:
        return self._identity

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, identity: Identity) -> None:
        self._set(identity)
        logger.info("Signed in", user_id=identity.id)

    async def sign_out(self) -> None:
        previous = self._identity
        self._set(None)
        if previous is not None:
            logger.info("Signed out", user_id=previous.id)

    def _set(self, identity: Identity | None) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        for listener in list(self._listeners):
            listener(identity)


class RemoteSessionProvider(InMemorySessionProvider):
    """Session provider backed by the hosted auth endpoint.

    The access token itself is issued by the hosted backend; this provider
    only resolves it to an identity and revokes it on sign-out.
    """

    def __init__(self, client: httpx.AsyncClient, *, api_key: str):
        super().__init__()
        self.client = client
        self.api_key = api_key

    def _headers(self, access_token: str) -> dict[str, str]:
        return {"apikey": self.api_key, "Authorization": f"Bearer {access_token}"}

    async def restore(self, access_token: str) -> Identity | None:
        """Resolve ``access_token`` to an identity and make it current.

        Returns None (and leaves the session signed out) when the token is
        rejected. Transport failures raise ``StoreError``.
        """
        try:
            response = await self.client.get("/auth/v1/user", headers=self._headers(access_token))
        except httpx.HTTPError as e:
            logger.error("Auth endpoint unreachable", error=str(e))
            raise StoreError("restore_session", str(e) or e.__class__.__name__) from e

        if response.status_code in (401, 403):
            logger.warning("Access token rejected", status=response.status_code)
            await self.sign_out()
            return None
        if response.is_error:
            raise StoreError(
                "restore_session",
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        identity = Identity(id=str(data["id"]), email=data.get("email") or "", access_token=access_token)
        self.sign_in(identity)
        return identity

    async def sign_out(self) -> None:
        identity = self.get_current_session()
        if identity is not None and identity.access_token:
            try:
                await self.client.post("/auth/v1/logout", headers=self._headers(identity.access_token))
            except httpx.HTTPError as e:
                logger.warning("Remote sign-out failed", error=str(e))
        await super().sign_out()
