"""HTTP client for the Vikunja REST API."""

from types import TracebackType
from typing import Any, Literal

import httpx
from pydantic import ValidationError

from obsidian_vikunja_sync.domain.interfaces.vikunja_client import IVikunjaClient
from obsidian_vikunja_sync.error_codes import ErrorCode
from obsidian_vikunja_sync.exceptions import (
    RelationAlreadyExistsError,
    VikunjaConnectError,
)
from obsidian_vikunja_sync.utils.logging import get_logger
from obsidian_vikunja_sync.vikunja.models import (
    PARENT_RELATION_KIND,
    VikunjaLabel,
    VikunjaTask,
)

logger = get_logger(__name__)

# Vikunja error code for "The task relation already exists."
RELATION_EXISTS_CODE = 4007


class VikunjaClient(IVikunjaClient):
    """Async client for the Vikunja API.

    Handles authentication headers, URL building and translation of httpx
    failures into VikunjaConnectError. No retries: a failed call surfaces to
    the caller, which logs and drops it.
    """

    def __init__(
        self,
        api_url: str,
        api_token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_url: Base URL of the API, e.g. ``https://vikunja.example/api/v1``
            api_token: Bearer token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (for tests)
        """
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )
        logger.debug("vikunja_client_initialized", url=self.api_url, timeout=timeout)

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        params: Any = None,
    ) -> Any:
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint

        logger.debug("vikunja_request", method=method, endpoint=endpoint)

        try:
            response = await self._client.request(
                method, endpoint, json=json, params=params
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            msg = f"Connection error to Vikunja at {self.api_url}: {e}"
            raise VikunjaConnectError(
                msg,
                suggestion="Check that the Vikunja server is reachable and the API URL is correct.",
                error_code=ErrorCode.VKJ_CONNECTION_FAILED.value,
                context={"method": method, "endpoint": endpoint},
            ) from e
        except httpx.HTTPError as e:
            msg = f"HTTP error calling Vikunja: {e}"
            raise VikunjaConnectError(
                msg,
                error_code=ErrorCode.VKJ_HTTP_ERROR.value,
                context={"method": method, "endpoint": endpoint},
            ) from e

        if not 200 <= response.status_code < 300:
            raise self._status_error(response, method, endpoint)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            msg = f"Invalid JSON response from Vikunja: {e}"
            raise VikunjaConnectError(
                msg,
                error_code=ErrorCode.VKJ_INVALID_RESPONSE.value,
                context={"method": method, "endpoint": endpoint},
            ) from e

    def _status_error(
        self, response: httpx.Response, method: str, endpoint: str
    ) -> VikunjaConnectError:
        api_code: Any = None
        api_message = response.text
        try:
            body = response.json()
            if isinstance(body, dict):
                api_code = body.get("code")
                api_message = body.get("message", api_message)
        except ValueError:
            pass

        error_code = (
            ErrorCode.VKJ_AUTH_FAILED
            if response.status_code in (401, 403)
            else ErrorCode.VKJ_HTTP_ERROR
        )
        msg = f"Vikunja API error {response.status_code}: {api_message}"
        return VikunjaConnectError(
            msg,
            error_code=error_code.value,
            context={"method": method, "endpoint": endpoint, "api_code": api_code},
            status_code=response.status_code,
        )

    async def validate_connection(self) -> bool:
        try:
            await self._request("GET", "/user")
        except VikunjaConnectError as e:
            logger.warning("vikunja_connection_warning", url=self.api_url, error=str(e))
            return False
        return True

    async def create_task(self, project_id: int, payload: dict[str, Any]) -> VikunjaTask:
        data = await self._request("PUT", f"/projects/{project_id}/tasks", json=payload)
        return self._parse_task(data)

    async def update_task(self, task_id: int, payload: dict[str, Any]) -> VikunjaTask:
        data = await self._request("POST", f"/tasks/{task_id}", json=payload)
        return self._parse_task(data)

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def get_task(self, task_id: int) -> VikunjaTask:
        data = await self._request("GET", f"/tasks/{task_id}")
        return self._parse_task(data)

    async def get_tasks(
        self,
        project_id: int,
        *,
        sort_by: list[str] | None = None,
        order_by: list[str] | None = None,
        filter_by: list[str] | None = None,
        filter_value: list[str] | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> list[VikunjaTask]:
        params: list[tuple[str, str | int]] = []
        params += [("sort_by[]", v) for v in sort_by or []]
        params += [("order_by[]", v) for v in order_by or []]
        params += [("filter_by[]", v) for v in filter_by or []]
        params += [("filter_value[]", v) for v in filter_value or []]
        if page:
            params.append(("page", page))
        if per_page:
            params.append(("per_page", per_page))

        data = await self._request(
            "GET", f"/projects/{project_id}/tasks", params=params or None
        )
        if not isinstance(data, list):
            logger.warning(
                "vikunja_tasks_not_a_list",
                project_id=project_id,
                response_type=type(data).__name__,
            )
            return []

        tasks: list[VikunjaTask] = []
        for item in data:
            try:
                tasks.append(VikunjaTask.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "vikunja_task_invalid",
                    project_id=project_id,
                    error=str(e),
                )
        return tasks

    async def get_labels(self, page: int = 1, per_page: int = 50) -> list[VikunjaLabel]:
        data = await self._request(
            "GET", "/labels", params={"page": page, "per_page": per_page}
        )
        if not isinstance(data, list):
            return []
        return [VikunjaLabel.model_validate(item) for item in data]

    async def get_all_labels(self) -> list[VikunjaLabel]:
        per_page = 50
        labels: list[VikunjaLabel] = []
        page = 1
        while True:
            batch = await self.get_labels(page=page, per_page=per_page)
            labels.extend(batch)
            if len(batch) < per_page:
                return labels
            page += 1

    async def create_label(self, title: str) -> VikunjaLabel:
        data = await self._request("PUT", "/labels", json={"title": title})
        return VikunjaLabel.model_validate(data)

    async def update_task_labels(self, task_id: int, labels: list[VikunjaLabel]) -> None:
        await self._request(
            "POST",
            f"/tasks/{task_id}/labels/bulk",
            json={"labels": [label.model_dump() for label in labels]},
        )

    async def create_parent_relation(self, task_id: int, parent_id: int) -> None:
        try:
            await self._request(
                "PUT",
                f"/tasks/{task_id}/relations",
                json={
                    "task_id": task_id,
                    "other_task_id": parent_id,
                    "relation_kind": PARENT_RELATION_KIND,
                },
            )
        except VikunjaConnectError as e:
            if e.status_code == 409 or e.context.get("api_code") == RELATION_EXISTS_CODE:
                msg = f"Task {task_id} is already a subtask of {parent_id}"
                raise RelationAlreadyExistsError(
                    msg,
                    error_code=ErrorCode.VKJ_RELATION_EXISTS.value,
                    context={"task_id": task_id, "parent_id": parent_id},
                ) from e
            raise

    def _parse_task(self, data: Any) -> VikunjaTask:
        try:
            return VikunjaTask.model_validate(data)
        except ValidationError as e:
            msg = f"Unexpected task payload from Vikunja: {e}"
            raise VikunjaConnectError(
                msg, error_code=ErrorCode.VKJ_INVALID_RESPONSE.value
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "VikunjaClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        await self.aclose()
        return False
