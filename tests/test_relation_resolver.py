"""Tests for parent relation resolution in both directions."""

import pytest

from obsidian_vikunja_sync.domain.entities.task import MutationOrigin
from obsidian_vikunja_sync.vikunja.models import VikunjaTask


def remote_child(task_id: int = 10, *parent_ids: int) -> VikunjaTask:
    return VikunjaTask.model_validate(
        {
            "id": task_id,
            "title": "Child",
            "related_tasks": {"parenttask": [{"id": p} for p in parent_ids]},
        }
    )


class TestPushParentRelation:
    """Test creating the Vikunja relation from a note's project link."""

    @pytest.mark.asyncio
    async def test_relation_is_idempotent(self, mock_store, mock_client, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent", vikunja_id=5)
        child = mock_store.add("Tasks/Child.md", "Child", projects=["[[Parent]]"], vikunja_id=10)

        assert await resolver.push_parent_relation(child, 10) is True
        assert await resolver.push_parent_relation(child, 10) is True

        assert mock_client.relations == {(10, 5)}
        assert len(mock_client.calls_to("create_parent_relation")) == 2

    @pytest.mark.asyncio
    async def test_unlinked_parent_is_skipped(self, mock_store, mock_client, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent")
        child = mock_store.add("Tasks/Child.md", "Child", projects=["[[Parent]]"])

        assert await resolver.push_parent_relation(child, 10) is False
        assert mock_client.calls_to("create_parent_relation") == []

    @pytest.mark.asyncio
    async def test_unresolvable_links_are_skipped(self, mock_store, mock_client, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent", vikunja_id=5)
        child = mock_store.add(
            "Tasks/Child.md", "Child", projects=["[[Nowhere]]", "[[Parent]]"]
        )

        assert await resolver.push_parent_relation(child, 10) is True
        assert mock_client.relations == {(10, 5)}

    @pytest.mark.asyncio
    async def test_self_reference(self, mock_store, mock_client, resolver) -> None:
        task = mock_store.add("Tasks/Loop.md", "Loop", projects=["[[Loop]]"], vikunja_id=10)

        assert await resolver.push_parent_relation(task, 10) is False
        assert mock_client.relations == set()

    @pytest.mark.asyncio
    async def test_api_failure_is_contained(self, mock_store, mock_client, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent", vikunja_id=5)
        child = mock_store.add("Tasks/Child.md", "Child", projects=["[[Parent]]"])
        mock_client.failing.add("create_parent_relation")

        assert await resolver.push_parent_relation(child, 10) is False


class TestDeferredLinks:
    """Test writing project links after a pull batch."""

    @pytest.mark.asyncio
    async def test_link_written_after_batch(self, mock_store, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent", vikunja_id=5)
        mock_store.add("Tasks/Child.md", "Child", vikunja_id=10)

        resolver.defer("Tasks/Child.md", remote_child(10, 5))
        assert resolver.pending == 1

        assert await resolver.apply_deferred() == 1
        assert resolver.pending == 0
        child = await mock_store.get_task("Tasks/Child.md")
        assert child.projects == ["[[Tasks/Parent]]"]
        assert mock_store.writes_to("Tasks/Child.md") == [
            ("update_fields", "Tasks/Child.md", {"projects": ["[[Tasks/Parent]]"]}, MutationOrigin.SYNC_PULL)
        ]

    @pytest.mark.asyncio
    async def test_absent_parent_leaves_links_alone(self, mock_store, resolver) -> None:
        mock_store.add("Tasks/Child.md", "Child", vikunja_id=10, projects=["[[Elsewhere]]"])

        resolver.defer("Tasks/Child.md", remote_child(10, 99))

        assert await resolver.apply_deferred() == 0
        assert mock_store.writes == []
        assert (await mock_store.get_task("Tasks/Child.md")).projects == ["[[Elsewhere]]"]

    @pytest.mark.asyncio
    async def test_existing_link_is_not_rewritten(self, mock_store, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent", vikunja_id=5)
        mock_store.add(
            "Tasks/Child.md",
            "Child",
            vikunja_id=10,
            projects=["[[Someday]]", "[[Parent|the parent]]"],
        )

        resolver.defer("Tasks/Child.md", remote_child(10, 5))

        assert await resolver.apply_deferred() == 0
        assert mock_store.writes == []

    @pytest.mark.asyncio
    async def test_only_first_parent_is_used(self, mock_store, resolver) -> None:
        mock_store.add("Tasks/First.md", "First", vikunja_id=5)
        mock_store.add("Tasks/Second.md", "Second", vikunja_id=6)
        mock_store.add("Tasks/Child.md", "Child", vikunja_id=10)

        resolver.defer("Tasks/Child.md", remote_child(10, 5, 6))
        await resolver.apply_deferred()

        assert (await mock_store.get_task("Tasks/Child.md")).projects == ["[[Tasks/First]]"]

    @pytest.mark.asyncio
    async def test_reset_discards_deferred(self, mock_store, resolver) -> None:
        resolver.defer("Tasks/Child.md", remote_child(10, 5))
        resolver.reset()

        assert await resolver.apply_deferred() == 0

    @pytest.mark.asyncio
    async def test_resolve_parent_link(self, mock_store, resolver) -> None:
        mock_store.add("Tasks/Parent.md", "Parent", vikunja_id=5)

        assert await resolver.resolve_parent_link(remote_child(10, 5)) == ["[[Tasks/Parent]]"]
        assert await resolver.resolve_parent_link(remote_child(10)) is None
        assert await resolver.resolve_parent_link(remote_child(10, 42)) is None
