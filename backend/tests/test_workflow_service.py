"""Tests for the workflow template store."""

from datetime import datetime, timedelta

import pytest

from app.models.workflow import (
    WorkflowCategory,
    WorkflowComplexity,
    WorkflowCreate,
    WorkflowStatus,
    WorkflowUpdate,
)
from app.services.workflow_service import (
    WorkflowConflictError,
    WorkflowNotFoundError,
    count_nodes,
)

OWNER = "user-1"
OTHER = "user-2"


def make_create(**overrides):
    data = {
        "title": "Daily digest",
        "description": "Send a daily digest email",
        "complexity": WorkflowComplexity.SIMPLE,
        "status": WorkflowStatus.PUBLISHED,
    }
    data.update(overrides)
    return WorkflowCreate(**data)


class TestCreateAndGet:

    def test_create_persists_to_disk(self, service):
        workflow = service.create_workflow(make_create(), OWNER)

        assert (service.workflows_dir / f"{workflow.id}.json").exists()
        loaded = service.get_workflow(workflow.id)
        assert loaded.title == "Daily digest"
        assert loaded.created_by == OWNER
        assert loaded.category == WorkflowCategory.OTHER

    def test_node_count_from_workflow_data(self, service, sample_workflow_data):
        workflow = service.create_workflow(make_create(workflow_data=sample_workflow_data, node_count=9), OWNER)
        assert workflow.node_count == 2

    def test_node_count_kept_without_node_map(self, service):
        workflow = service.create_workflow(make_create(node_count=4), OWNER)
        assert workflow.node_count == 4

    def test_tags_deduplicated(self, service):
        workflow = service.create_workflow(make_create(tags=["rss", "email", "rss", " "]), OWNER)
        assert workflow.tags == ["rss", "email"]

    def test_get_missing(self, service):
        assert service.get_workflow("does-not-exist") is None
        assert service.get_workflow("likes") is None
        assert service.get_workflow("../etc/passwd") is None

    def test_visibility(self, service):
        draft = service.create_workflow(make_create(status=WorkflowStatus.DRAFT), OWNER)
        assert service.get_public_workflow(draft.id) is None
        assert service.get_owned_workflow(draft.id, OWNER) is not None
        assert service.get_owned_workflow(draft.id, OTHER) is None

    def test_count_nodes(self):
        assert count_nodes({"nodes": {"a": {}, "b": {}}}) == 2
        assert count_nodes({"nodes": []}) is None
        assert count_nodes(None) is None


class TestListing:

    def test_public_list_sorted_by_likes(self, service):
        first = service.create_workflow(make_create(title="First"), OWNER)
        second = service.create_workflow(make_create(title="Second"), OWNER)
        service.create_workflow(make_create(title="Hidden", status=WorkflowStatus.DRAFT), OWNER)
        service.like_workflow(second.id, OTHER)

        result = service.list_public()
        assert [item.id for item in result.items] == [second.id, first.id]
        assert result.next_cursor is None
        assert all(item.is_liked is None for item in result.items)

    def test_public_list_filters(self, service):
        service.create_workflow(make_create(title="RSS reader", category=WorkflowCategory.CONTENT_AUTOMATION), OWNER)
        service.create_workflow(make_create(title="Invoices", description="Finance sync", category=WorkflowCategory.FINANCE), OWNER)

        assert [i.title for i in service.list_public(search="rss").items] == ["RSS reader"]
        assert [i.title for i in service.list_public(search="FINANCE").items] == ["Invoices"]
        assert [i.title for i in service.list_public(category="FINANCE").items] == ["Invoices"]
        assert service.list_public(complexity="BUSINESS").items == []

    def test_is_liked_for_viewer(self, service):
        workflow = service.create_workflow(make_create(), OWNER)
        service.like_workflow(workflow.id, OTHER)

        assert service.list_public(user_id=OTHER).items[0].is_liked is True
        assert service.list_public(user_id=OWNER).items[0].is_liked is False

    def test_pagination(self, service):
        for i in range(5):
            service.create_workflow(make_create(title=f"Workflow {i}"), OWNER)

        seen = []
        cursor = None
        while True:
            page = service.list_public(limit=2, cursor=cursor)
            seen.extend(item.id for item in page.items)
            if not page.next_cursor:
                break
            cursor = page.next_cursor

        assert len(seen) == 5
        assert len(set(seen)) == 5

    def test_invalid_paging(self, service):
        with pytest.raises(ValueError):
            service.list_public(limit=500)
        with pytest.raises(ValueError):
            service.list_public(cursor="unknown")

    def test_list_mine_newest_first(self, service):
        older = service.create_workflow(make_create(title="Older"), OWNER)
        older.created_at = datetime.now() - timedelta(days=1)
        service._save_workflow(older)
        newer = service.create_workflow(make_create(title="Newer", status=WorkflowStatus.DRAFT), OWNER)
        service.create_workflow(make_create(title="Not mine"), OTHER)

        assert [i.id for i in service.list_mine(OWNER).items] == [newer.id, older.id]
        assert [i.id for i in service.list_mine(OWNER, status="DRAFT").items] == [newer.id]

    def test_list_liked(self, service):
        liked = service.create_workflow(make_create(title="Liked"), OWNER)
        service.create_workflow(make_create(title="Not liked"), OWNER)
        service.like_workflow(liked.id, OTHER)

        items = service.list_liked(OTHER).items
        assert [i.id for i in items] == [liked.id]
        assert items[0].is_liked is True


class TestMutations:

    def test_update(self, service, sample_workflow_data):
        workflow = service.create_workflow(make_create(tags=["a"]), OWNER)

        updated = service.update_workflow(
            workflow.id,
            WorkflowUpdate(title="Renamed", tags=["b", "b"], workflow_data=sample_workflow_data),
            OWNER,
        )

        assert updated.title == "Renamed"
        assert updated.description == workflow.description
        assert updated.tags == ["b"]
        assert updated.node_count == 2
        assert updated.updated_at >= workflow.updated_at
        assert service.get_workflow(workflow.id).title == "Renamed"

    def test_update_requires_owner(self, service):
        workflow = service.create_workflow(make_create(), OWNER)
        with pytest.raises(WorkflowNotFoundError):
            service.update_workflow(workflow.id, WorkflowUpdate(title="Hijacked"), OTHER)

    def test_delete_removes_likes(self, service):
        workflow = service.create_workflow(make_create(), OWNER)
        service.like_workflow(workflow.id, OTHER)

        service.delete_workflow(workflow.id, OWNER)

        assert service.get_workflow(workflow.id) is None
        assert service.list_liked(OTHER).items == []
        with pytest.raises(WorkflowNotFoundError):
            service.delete_workflow(workflow.id, OWNER)

    def test_duplicate(self, service, sample_workflow_data):
        workflow = service.create_workflow(make_create(tags=["x"], workflow_data=sample_workflow_data), OWNER)
        service.like_workflow(workflow.id, OTHER)
        service.increment_view(workflow.id)

        copy = service.duplicate_workflow(workflow.id, OWNER)

        assert copy.id != workflow.id
        assert copy.title == "Daily digest (Copy)"
        assert copy.status == WorkflowStatus.DRAFT
        assert copy.tags == ["x"]
        assert copy.workflow_data == sample_workflow_data
        assert (copy.like_count, copy.view_count, copy.download_count) == (0, 0, 0)
        with pytest.raises(WorkflowNotFoundError):
            service.duplicate_workflow(workflow.id, OTHER)

    def test_like_and_unlike(self, service):
        workflow = service.create_workflow(make_create(), OWNER)

        assert service.like_workflow(workflow.id, OTHER).like_count == 1
        with pytest.raises(WorkflowConflictError):
            service.like_workflow(workflow.id, OTHER)

        assert service.unlike_workflow(workflow.id, OTHER).like_count == 0
        with pytest.raises(WorkflowNotFoundError):
            service.unlike_workflow(workflow.id, OTHER)

    def test_like_draft_rejected(self, service):
        draft = service.create_workflow(make_create(status=WorkflowStatus.DRAFT), OWNER)
        with pytest.raises(WorkflowNotFoundError):
            service.like_workflow(draft.id, OTHER)

    def test_counters(self, service):
        workflow = service.create_workflow(make_create(), OWNER)
        service.increment_view(workflow.id)
        service.increment_view(workflow.id)
        service.increment_download(workflow.id)

        stored = service.get_workflow(workflow.id)
        assert stored.view_count == 2
        assert stored.download_count == 1

        draft = service.create_workflow(make_create(status=WorkflowStatus.DRAFT), OWNER)
        with pytest.raises(WorkflowNotFoundError):
            service.increment_download(draft.id)


class TestStatsAndGraph:

    def test_stats(self, service):
        service.create_workflow(make_create(category=WorkflowCategory.FINANCE), OWNER)
        service.create_workflow(make_create(category=WorkflowCategory.FINANCE), OTHER)
        service.create_workflow(make_create(category=WorkflowCategory.MARKETING, status=WorkflowStatus.DRAFT), OTHER)

        stats = service.get_stats()
        assert stats.total_workflows == 3
        assert stats.total_published_workflows == 2
        assert stats.total_authors == 2
        assert stats.category_counts == {"FINANCE": 2}

    def test_invalid_files_are_skipped(self, service):
        service.create_workflow(make_create(), OWNER)
        (service.workflows_dir / "broken.json").write_text("{not json")

        assert service.get_stats().total_workflows == 1

    def test_corrupt_file_reads_as_missing(self, service):
        workflow = service.create_workflow(make_create(), OWNER)
        service._get_workflow_file(workflow.id).write_text("{not json")

        assert service.get_workflow(workflow.id) is None
        with pytest.raises(WorkflowNotFoundError):
            service.increment_view(workflow.id)

    def test_recent_published(self, service, sample_workflow_data):
        older = service.create_workflow(make_create(title="Older", workflow_data=sample_workflow_data), OWNER)
        older.created_at = datetime.now() - timedelta(days=1)
        service._save_workflow(older)
        newer = service.create_workflow(make_create(title="Newer"), OTHER)
        service.create_workflow(make_create(title="Draft", status=WorkflowStatus.DRAFT), OWNER)

        recent = service.list_recent_published()
        assert [w.id for w in recent] == [newer.id, older.id]
        assert recent[0].workflow_data["nodes"] == {}
        assert recent[0].workflow_data["connections"] == {}
        assert recent[1].workflow_data == sample_workflow_data
        assert [w.id for w in service.list_recent_published(limit=1)] == [newer.id]

    def test_graph(self, service, sample_workflow_data):
        workflow = service.create_workflow(make_create(workflow_data=sample_workflow_data), OWNER)

        graph = service.get_graph(workflow.id, interactive=False)
        assert [n.id for n in graph.nodes] == ["n1", "n2"]
        assert len(graph.edges) == 1

    def test_graph_of_draft_visible_to_owner_only(self, service, sample_workflow_data):
        draft = service.create_workflow(
            make_create(status=WorkflowStatus.DRAFT, workflow_data=sample_workflow_data), OWNER
        )
        assert len(service.get_graph(draft.id, user_id=OWNER).nodes) == 2
        with pytest.raises(WorkflowNotFoundError):
            service.get_graph(draft.id, user_id=OTHER)

    def test_graph_without_data_is_empty(self, service):
        workflow = service.create_workflow(make_create(), OWNER)
        graph = service.get_graph(workflow.id)
        assert graph.nodes == [] and graph.edges == []
