"""Task store over the hosted backend's REST data API.

The hosted backend exposes each table under ``/rest/v1/<table>`` with
PostgREST query conventions (``column=eq.value`` filters, ``order=col.asc``
sorting, ``select=`` projections). Requests carry the project API key and
the signed-in user's access token, so row level security scopes every call
to the owner in addition to the explicit ``user_id`` filter.
"""

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from taskdeck.exceptions import StoreError
from taskdeck.schemas import Attachment, Identity, Task

logger = structlog.get_logger()

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class RestTaskStore:
    """Identity-scoped task store speaking to the hosted REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        identity: Identity,
        *,
        api_key: str,
        table: str = "tasks",
    ):
        self.client = client
        self.owner_id = identity.id
        self.table = table
        token = identity.access_token or api_key
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {token}",
        }

    @property
    def path(self) -> str:
        return f"/rest/v1/{self.table}"

    async def _request(
        self,
        operation: str,
        method: str,
        *,
        params: dict[str, str],
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(
                method,
                self.path,
                params=params,
                json=json,
                headers={**self.headers, **(headers or {})},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("Task store timeout", operation=operation)
            raise StoreError(operation, "request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "Task store error",
                operation=operation,
                status=e.response.status_code,
                body=e.response.text[:500],
            )
            raise StoreError(
                operation,
                _error_message(e.response),
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Task store unreachable", operation=operation, error=str(e))
            raise StoreError(operation, str(e) or e.__class__.__name__) from e
        return response

    def _owned(self, task_id: str | None = None) -> dict[str, str]:
        params = {"user_id": f"eq.{self.owner_id}"}
        if task_id is not None:
            params["id"] = f"eq.{task_id}"
        return params

    async def list_tasks(self) -> list[Task]:
        response = await self._request(
            "list_tasks",
            "GET",
            params={"select": "*", **self._owned(), "order": "order.asc"},
        )
        try:
            return [Task.model_validate(row) for row in response.json()]
        except (ValueError, TypeError, ValidationError) as e:
            raise _malformed("list_tasks", e) from e

    async def insert_task(self, record: dict[str, Any]) -> None:
        await self._request(
            "insert_task",
            "POST",
            params={},
            json=[{**record, "user_id": self.owner_id}],
            headers={"Prefer": "return=minimal"},
        )

    async def update_task(self, task_id: str, changes: dict[str, Any]) -> None:
        await self._request(
            "update_task",
            "PATCH",
            params=self._owned(task_id),
            json=changes,
            headers={"Prefer": "return=minimal"},
        )

    async def delete_task(self, task_id: str) -> None:
        await self._request("delete_task", "DELETE", params=self._owned(task_id))

    async def get_attachments(self, task_id: str) -> list[Attachment]:
        response = await self._request(
            "get_attachments",
            "GET",
            params={"select": "attachments", **self._owned(task_id)},
            headers={"Accept": SINGLE_OBJECT},
        )
        try:
            body = response.json()
            if not isinstance(body, dict):
                raise TypeError(f"expected an object, got {type(body).__name__}")
            return [Attachment.model_validate(row) for row in body.get("attachments") or []]
        except (ValueError, TypeError, ValidationError) as e:
            raise _malformed("get_attachments", e) from e

    async def set_attachments(self, task_id: str, attachments: list[Attachment]) -> None:
        await self.update_task(
            task_id,
            {"attachments": [a.model_dump(mode="json") for a in attachments]},
        )


def _malformed(operation: str, error: Exception) -> StoreError:
    """Rows the task models reject are a store failure, not a crash."""
    logger.error("Task store returned malformed data", operation=operation, error=str(error))
    return StoreError(operation, f"malformed response: {error}")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("msg") or body.get("error") or body)
    return f"HTTP {response.status_code}"


class RestStoreBackend:
    """Hands out ``RestTaskStore`` instances sharing one HTTP client."""

    name = "rest"

    def __init__(self, client: httpx.AsyncClient, *, api_key: str, table: str = "tasks"):
        self.client = client
        self.api_key = api_key
        self.table = table

    @classmethod
    def from_settings(cls, settings: Any) -> "RestStoreBackend":
        client = httpx.AsyncClient(
            base_url=str(settings.store_url).rstrip("/"),
            timeout=settings.store_timeout,
        )
        return cls(
            client,
            api_key=settings.store_api_key.get_secret_value(),
            table=settings.store_table,
        )

    def for_identity(self, identity: Identity) -> RestTaskStore:
        return RestTaskStore(self.client, identity, api_key=self.api_key, table=self.table)

    async def ping(self) -> None:
        try:
            response = await self.client.get(
                f"/rest/v1/{self.table}",
                params={"select": "id", "limit": "1"},
                headers={"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreError("ping", str(e) or e.__class__.__name__) from e

    async def close(self) -> None:
        await self.client.aclose()
