"""Tests for the Vikunja HTTP client."""

import json

import httpx
import pytest
import respx

from obsidian_vikunja_sync.exceptions import RelationAlreadyExistsError, VikunjaConnectError
from obsidian_vikunja_sync.vikunja.client import VikunjaClient
from obsidian_vikunja_sync.vikunja.models import VikunjaLabel

API_URL = "http://vikunja.test/api/v1"
HOST = "vikunja.test"


def make_client() -> VikunjaClient:
    return VikunjaClient(API_URL, "secret-token")


class TestConnection:
    """Test connection validation and authentication."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_validate_connection_ok(self) -> None:
        route = respx.get(f"{API_URL}/user").mock(
            return_value=httpx.Response(200, json={"id": 1, "username": "me"})
        )

        async with make_client() as client:
            assert await client.validate_connection() is True

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer secret-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_validate_connection_unauthorized(self) -> None:
        respx.get(f"{API_URL}/user").mock(
            return_value=httpx.Response(401, json={"code": 11, "message": "Invalid token"})
        )

        async with make_client() as client:
            assert await client.validate_connection() is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_trailing_slash_in_api_url(self) -> None:
        route = respx.get(f"{API_URL}/user").mock(return_value=httpx.Response(200, json={}))

        async with VikunjaClient(API_URL + "/", "t") as client:
            await client.validate_connection()

        assert route.called


class TestTasks:
    """Test task endpoints."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_task_tolerates_null_collections(self) -> None:
        route = respx.put(f"{API_URL}/projects/3/tasks").mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": 77,
                    "title": "Write report",
                    "description": None,
                    "labels": None,
                    "reminders": None,
                    "related_tasks": None,
                },
            )
        )

        async with make_client() as client:
            task = await client.create_task(3, {"title": "Write report", "priority": 4})

        assert task.id == 77
        assert task.labels == []
        assert task.reminders == []
        assert task.parent_task_ids == []
        assert json.loads(route.calls.last.request.content) == {
            "title": "Write report",
            "priority": 4,
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_task_posts_to_task(self) -> None:
        route = respx.post(f"{API_URL}/tasks/77").mock(
            return_value=httpx.Response(200, json={"id": 77, "title": "Renamed", "done": True})
        )

        async with make_client() as client:
            task = await client.update_task(77, {"title": "Renamed", "done": True})

        assert route.called
        assert task.done is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_delete_task_with_empty_response(self) -> None:
        respx.delete(f"{API_URL}/tasks/77").mock(return_value=httpx.Response(204))

        async with make_client() as client:
            assert await client.delete_task(77) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_tasks_sends_array_params(self) -> None:
        route = respx.get(host=HOST, path="/api/v1/projects/3/tasks").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {
                        "id": 10,
                        "title": "Child",
                        "related_tasks": {"parenttask": [{"id": 5, "title": "Parent"}]},
                    }
                ],
            )
        )

        async with make_client() as client:
            tasks = await client.get_tasks(
                3, sort_by=["updated"], order_by=["desc"], page=2, per_page=50
            )

        params = route.calls.last.request.url.params
        assert params.get_list("sort_by[]") == ["updated"]
        assert params.get_list("order_by[]") == ["desc"]
        assert params["page"] == "2"
        assert params["per_page"] == "50"
        assert [t.id for t in tasks] == [10]
        assert tasks[0].parent_task_ids == [5]

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_tasks_non_list_response(self) -> None:
        respx.get(host=HOST, path="/api/v1/projects/3/tasks").mock(
            return_value=httpx.Response(200, json={"message": "nope"})
        )

        async with make_client() as client:
            assert await client.get_tasks(3) == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_tasks_skips_invalid_items(self) -> None:
        respx.get(host=HOST, path="/api/v1/projects/3/tasks").mock(
            return_value=httpx.Response(200, json=[{"title": "no id"}, {"id": 4, "title": "ok"}])
        )

        async with make_client() as client:
            tasks = await client.get_tasks(3)

        assert [t.id for t in tasks] == [4]


class TestErrors:
    """Test translation of transport and API failures."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error(self) -> None:
        respx.get(f"{API_URL}/tasks/7").mock(
            return_value=httpx.Response(500, json={"message": "boom"})
        )

        async with make_client() as client:
            with pytest.raises(VikunjaConnectError) as exc_info:
                await client.get_task(7)

        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "VKJ-HTTP-001"
        assert "boom" in exc_info.value.message

    @pytest.mark.asyncio
    @respx.mock
    async def test_auth_error_code(self) -> None:
        respx.get(f"{API_URL}/tasks/7").mock(return_value=httpx.Response(403, text="forbidden"))

        async with make_client() as client:
            with pytest.raises(VikunjaConnectError) as exc_info:
                await client.get_task(7)

        assert exc_info.value.error_code == "VKJ-AUTH-001"

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_refused(self) -> None:
        respx.get(f"{API_URL}/tasks/7").mock(side_effect=httpx.ConnectError("refused"))

        async with make_client() as client:
            with pytest.raises(VikunjaConnectError) as exc_info:
                await client.get_task(7)

        assert exc_info.value.error_code == "VKJ-CONN-001"
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json(self) -> None:
        respx.get(f"{API_URL}/tasks/7").mock(
            return_value=httpx.Response(200, content=b"<html>proxy page</html>")
        )

        async with make_client() as client:
            with pytest.raises(VikunjaConnectError) as exc_info:
                await client.get_task(7)

        assert exc_info.value.error_code == "VKJ-RESP-001"


class TestRelations:
    """Test parent relation creation."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_parent_relation(self) -> None:
        route = respx.put(f"{API_URL}/tasks/10/relations").mock(
            return_value=httpx.Response(201, json={"task_id": 10, "other_task_id": 5})
        )

        async with make_client() as client:
            await client.create_parent_relation(10, 5)

        assert json.loads(route.calls.last.request.content) == {
            "task_id": 10,
            "other_task_id": 5,
            "relation_kind": "parenttask",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_conflict_means_relation_exists(self) -> None:
        respx.put(f"{API_URL}/tasks/10/relations").mock(
            return_value=httpx.Response(409, json={"message": "exists"})
        )

        async with make_client() as client:
            with pytest.raises(RelationAlreadyExistsError):
                await client.create_parent_relation(10, 5)

    @pytest.mark.asyncio
    @respx.mock
    async def test_api_code_means_relation_exists(self) -> None:
        respx.put(f"{API_URL}/tasks/10/relations").mock(
            return_value=httpx.Response(
                400, json={"code": 4007, "message": "The task relation already exists."}
            )
        )

        async with make_client() as client:
            with pytest.raises(RelationAlreadyExistsError) as exc_info:
                await client.create_parent_relation(10, 5)

        assert exc_info.value.error_code == "VKJ-REL-001"

    @pytest.mark.asyncio
    @respx.mock
    async def test_other_relation_errors_propagate(self) -> None:
        respx.put(f"{API_URL}/tasks/10/relations").mock(
            return_value=httpx.Response(500, json={"message": "db down"})
        )

        async with make_client() as client:
            with pytest.raises(VikunjaConnectError) as exc_info:
                await client.create_parent_relation(10, 5)

        assert not isinstance(exc_info.value, RelationAlreadyExistsError)


class TestLabels:
    """Test label endpoints."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_all_labels_pages(self) -> None:
        def labels_page(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            if page == 1:
                return httpx.Response(
                    200, json=[{"id": i, "title": f"label-{i}"} for i in range(50)]
                )
            return httpx.Response(200, json=[{"id": 50, "title": "last"}])

        route = respx.get(host=HOST, path="/api/v1/labels").mock(side_effect=labels_page)

        async with make_client() as client:
            labels = await client.get_all_labels()

        assert len(labels) == 51
        assert labels[-1].title == "last"
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_create_label(self) -> None:
        respx.put(f"{API_URL}/labels").mock(
            return_value=httpx.Response(200, json={"id": 9, "title": "work", "hex_color": ""})
        )

        async with make_client() as client:
            label = await client.create_label("work")

        assert label == VikunjaLabel(id=9, title="work")

    @pytest.mark.asyncio
    @respx.mock
    async def test_update_task_labels_bulk(self) -> None:
        route = respx.post(f"{API_URL}/tasks/77/labels/bulk").mock(
            return_value=httpx.Response(200, json={"labels": []})
        )

        async with make_client() as client:
            await client.update_task_labels(77, [VikunjaLabel(id=9, title="work")])

        assert json.loads(route.calls.last.request.content) == {
            "labels": [{"id": 9, "title": "work"}]
        }
