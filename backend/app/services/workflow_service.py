"""Service for managing workflow templates."""

import json
import uuid
from pathlib import Path
from datetime import datetime
from typing import Any

from ..core.config import settings
from ..models.graph import WorkflowGraph
from ..models.workflow import (
    WorkflowCreate,
    WorkflowFeed,
    WorkflowFeedItem,
    WorkflowListResponse,
    WorkflowStats,
    WorkflowStatus,
    WorkflowSummary,
    WorkflowTemplate,
    WorkflowUpdate,
)
from .graph_layout import layout_workflow

LIKES_FILE = "likes.json"
COPY_SUFFIX = " (Copy)"


class WorkflowServiceError(Exception):
    """Base error for workflow operations."""


class WorkflowNotFoundError(WorkflowServiceError):
    """Workflow does not exist, is not visible, or is not owned by the caller."""


class WorkflowConflictError(WorkflowServiceError):
    """Operation conflicts with the current state (e.g. liking twice)."""


def count_nodes(workflow_data: Any) -> int | None:
    """Number of nodes in raw workflow JSON, or None when it has no node map."""
    if isinstance(workflow_data, dict) and isinstance(workflow_data.get("nodes"), dict):
        return len(workflow_data["nodes"])
    return None


def empty_workflow_data(workflow: WorkflowTemplate) -> dict[str, Any]:
    """Placeholder workflow JSON for templates stored without a graph."""
    return {
        "name": workflow.title,
        "nodes": {},
        "connections": {},
        "settings": {},
        "meta": {"templateId": workflow.id, "templateTitle": workflow.title},
    }


def _unique_tags(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(tag.strip() for tag in tags if tag.strip()))


class WorkflowService:
    """Service for workflow template CRUD, likes and counters.

    Each workflow is stored as ``<id>.json`` in the workflows directory; likes
    live in a single ``likes.json`` mapping workflow ID -> list of user IDs.
    """

    def __init__(self, workflows_dir: Path | None = None):
        self.workflows_dir = workflows_dir or settings.workflows_dir
        self.workflows_dir.mkdir(parents=True, exist_ok=True)

    def _get_workflow_file(self, workflow_id: str) -> Path:
        """Get the file path for a workflow."""
        return self.workflows_dir / f"{workflow_id}.json"

    def _get_likes_file(self) -> Path:
        return self.workflows_dir / LIKES_FILE

    def _save_workflow(self, workflow: WorkflowTemplate):
        """Save a workflow to disk."""
        with open(self._get_workflow_file(workflow.id), "w") as f:
            json.dump(workflow.model_dump(mode="json"), f, indent=2, default=str)

    def _load_likes(self) -> dict[str, list[str]]:
        likes_file = self._get_likes_file()
        if not likes_file.exists():
            return {}
        with open(likes_file, "r") as f:
            return json.load(f)

    def _save_likes(self, likes: dict[str, list[str]]):
        with open(self._get_likes_file(), "w") as f:
            json.dump(likes, f, indent=2)

    def _all_workflows(self) -> list[WorkflowTemplate]:
        workflows = []

        for workflow_file in self.workflows_dir.glob("*.json"):
            if workflow_file.name == LIKES_FILE:
                continue
            try:
                with open(workflow_file, "r") as f:
                    workflows.append(WorkflowTemplate(**json.load(f)))
            except Exception as e:
                # Skip invalid workflow files
                print(f"⚠️  Skipping invalid workflow file {workflow_file}: {e}")
                continue

        return workflows

    def _paginate(
        self,
        workflows: list[WorkflowTemplate],
        limit: int | None,
        cursor: str | None,
        user_id: str | None = None,
    ) -> WorkflowListResponse:
        """Slice a sorted list into a page starting after ``cursor``."""
        limit = limit or settings.default_page_size
        if not 1 <= limit <= settings.max_page_size:
            raise ValueError(f"limit must be between 1 and {settings.max_page_size}")

        start = 0
        if cursor:
            ids = [w.id for w in workflows]
            if cursor not in ids:
                raise ValueError(f"Invalid cursor: {cursor}")
            start = ids.index(cursor) + 1

        page = workflows[start:start + limit]
        next_cursor = page[-1].id if page and start + limit < len(workflows) else None

        liked_ids: set[str] = set()
        if user_id:
            liked_ids = {
                workflow_id
                for workflow_id, users in self._load_likes().items()
                if user_id in users
            }

        items = [
            WorkflowSummary(
                **w.model_dump(),
                is_liked=(w.id in liked_ids) if user_id else None,
            )
            for w in page
        ]
        return WorkflowListResponse(items=items, next_cursor=next_cursor)

    def create_workflow(self, workflow_create: WorkflowCreate, user_id: str) -> WorkflowTemplate:
        """Create a new workflow template."""
        node_count = count_nodes(workflow_create.workflow_data)

        workflow = WorkflowTemplate(
            id=str(uuid.uuid4()),
            title=workflow_create.title,
            description=workflow_create.description,
            category=workflow_create.category,
            complexity=workflow_create.complexity,
            trigger_type=workflow_create.trigger_type,
            status=workflow_create.status,
            tags=_unique_tags(workflow_create.tags),
            workflow_data=workflow_create.workflow_data,
            preview_image=workflow_create.preview_image,
            node_count=node_count if node_count is not None else workflow_create.node_count,
            created_by=user_id,
        )
        self._save_workflow(workflow)
        print(f"✅ Created workflow {workflow.id}: {workflow.title} ({workflow.node_count} nodes)")
        return workflow

    def get_workflow(self, workflow_id: str) -> WorkflowTemplate | None:
        """Get a workflow by ID."""
        if "/" in workflow_id or "\\" in workflow_id:
            return None

        workflow_file = self._get_workflow_file(workflow_id)

        if workflow_file.name == LIKES_FILE or not workflow_file.exists():
            return None

        try:
            with open(workflow_file, "r") as f:
                return WorkflowTemplate(**json.load(f))
        except ValueError as e:
            # Corrupt JSON or a record that no longer validates
            print(f"⚠️  Ignoring invalid workflow file {workflow_file}: {e}")
            return None

    def get_owned_workflow(self, workflow_id: str, user_id: str) -> WorkflowTemplate | None:
        """Get a workflow only if ``user_id`` created it."""
        workflow = self.get_workflow(workflow_id)
        if workflow is None or workflow.created_by != user_id:
            return None
        return workflow

    def get_public_workflow(self, workflow_id: str) -> WorkflowTemplate | None:
        """Get a workflow only if it is published."""
        workflow = self.get_workflow(workflow_id)
        if workflow is None or workflow.status != WorkflowStatus.PUBLISHED:
            return None
        return workflow

    def list_public(
        self,
        search: str | None = None,
        category: str | None = None,
        complexity: str | None = None,
        trigger_type: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
        user_id: str | None = None,
    ) -> WorkflowListResponse:
        """List published workflows, most liked first."""
        workflows = [w for w in self._all_workflows() if w.status == WorkflowStatus.PUBLISHED]

        if search:
            needle = search.lower()
            workflows = [
                w for w in workflows
                if needle in w.title.lower() or needle in w.description.lower()
            ]
        if category:
            workflows = [w for w in workflows if w.category.value == category]
        if complexity:
            workflows = [w for w in workflows if w.complexity.value == complexity]
        if trigger_type:
            workflows = [w for w in workflows if w.trigger_type.value == trigger_type]

        # Most liked first, newest first among equals, ID keeps the order total
        workflows.sort(key=lambda w: w.id)
        workflows.sort(key=lambda w: (w.like_count, w.created_at), reverse=True)
        return self._paginate(workflows, limit, cursor, user_id)

    def list_mine(
        self,
        user_id: str,
        status: str | None = None,
        category: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> WorkflowListResponse:
        """List workflows created by ``user_id``, newest first."""
        workflows = [w for w in self._all_workflows() if w.created_by == user_id]

        if status:
            workflows = [w for w in workflows if w.status.value == status]
        if category:
            workflows = [w for w in workflows if w.category.value == category]

        workflows.sort(key=lambda w: w.id)
        workflows.sort(key=lambda w: w.created_at, reverse=True)
        return self._paginate(workflows, limit, cursor, user_id)

    def list_liked(self, user_id: str, limit: int | None = None, cursor: str | None = None) -> WorkflowListResponse:
        """List workflows liked by ``user_id``, newest first."""
        liked_ids = {
            workflow_id
            for workflow_id, users in self._load_likes().items()
            if user_id in users
        }
        workflows = [w for w in self._all_workflows() if w.id in liked_ids]

        workflows.sort(key=lambda w: w.id)
        workflows.sort(key=lambda w: w.created_at, reverse=True)
        return self._paginate(workflows, limit, cursor, user_id)

    def update_workflow(self, workflow_id: str, workflow_update: WorkflowUpdate, user_id: str) -> WorkflowTemplate:
        """Update a workflow owned by ``user_id``."""
        workflow = self.get_owned_workflow(workflow_id, user_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")

        update_data = workflow_update.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if key == "workflow_data":
                continue
            if value is None and key != "preview_image":
                continue
            if key == "tags":
                value = _unique_tags(value)
            setattr(workflow, key, value)

        if workflow_update.workflow_data is not None:
            workflow.workflow_data = workflow_update.workflow_data
            node_count = count_nodes(workflow_update.workflow_data)
            if node_count is not None:
                workflow.node_count = node_count

        workflow.updated_at = datetime.now()
        self._save_workflow(workflow)
        return workflow

    def delete_workflow(self, workflow_id: str, user_id: str) -> None:
        """Delete a workflow owned by ``user_id`` together with its likes."""
        workflow = self.get_owned_workflow(workflow_id, user_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")

        self._get_workflow_file(workflow_id).unlink()

        likes = self._load_likes()
        if workflow_id in likes:
            del likes[workflow_id]
            self._save_likes(likes)

        print(f"🗑️  Deleted workflow {workflow_id}")

    def duplicate_workflow(self, workflow_id: str, user_id: str) -> WorkflowTemplate:
        """Copy a workflow owned by ``user_id`` as a new draft."""
        original = self.get_owned_workflow(workflow_id, user_id)
        if original is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")

        now = datetime.now()
        duplicate = original.model_copy(
            deep=True,
            update={
                "id": str(uuid.uuid4()),
                "title": f"{original.title}{COPY_SUFFIX}",
                "status": WorkflowStatus.DRAFT,
                "workflow_data": original.workflow_data or {},
                "view_count": 0,
                "download_count": 0,
                "like_count": 0,
                "created_at": now,
                "updated_at": now,
            },
        )
        self._save_workflow(duplicate)
        print(f"📋 Duplicated workflow {workflow_id} -> {duplicate.id}")
        return duplicate

    def like_workflow(self, workflow_id: str, user_id: str) -> WorkflowTemplate:
        """Record a like from ``user_id`` on a published workflow."""
        workflow = self.get_public_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found or not published")

        likes = self._load_likes()
        users = likes.setdefault(workflow_id, [])
        if user_id in users:
            raise WorkflowConflictError(f"Workflow {workflow_id} already liked")

        users.append(user_id)
        workflow.like_count += 1
        self._save_likes(likes)
        self._save_workflow(workflow)
        return workflow

    def unlike_workflow(self, workflow_id: str, user_id: str) -> WorkflowTemplate:
        """Remove the like from ``user_id``."""
        likes = self._load_likes()
        users = likes.get(workflow_id, [])
        if user_id not in users:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} is not liked")

        users.remove(user_id)
        if not users:
            del likes[workflow_id]
        self._save_likes(likes)

        workflow = self.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")
        workflow.like_count = max(0, workflow.like_count - 1)
        self._save_workflow(workflow)
        return workflow

    def _increment(self, workflow_id: str, counter: str) -> WorkflowTemplate:
        workflow = self.get_public_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found or not published")

        setattr(workflow, counter, getattr(workflow, counter) + 1)
        self._save_workflow(workflow)
        return workflow

    def increment_view(self, workflow_id: str) -> WorkflowTemplate:
        return self._increment(workflow_id, "view_count")

    def increment_download(self, workflow_id: str) -> WorkflowTemplate:
        return self._increment(workflow_id, "download_count")

    def list_recent_published(self, limit: int | None = None) -> list[WorkflowTemplate]:
        """Newest published workflows, for the feed.

        Workflows stored without graph data get an empty graph.
        """
        limit = limit or settings.feed_size
        workflows = [w for w in self._all_workflows() if w.status == WorkflowStatus.PUBLISHED]
        workflows.sort(key=lambda w: w.id)
        workflows.sort(key=lambda w: w.created_at, reverse=True)

        recent = workflows[:limit]
        for w in recent:
            if not w.workflow_data:
                w.workflow_data = empty_workflow_data(w)
        return recent

    def get_feed(self, limit: int | None = None) -> WorkflowFeed:
        """Feed of the newest published workflows with links to their pages."""
        site_url = settings.site_url.rstrip("/")
        items = [
            WorkflowFeedItem(
                id=w.id,
                title=w.title,
                description=w.description,
                link=f"{site_url}/workflows/{w.id}",
                author=w.created_by,
                category=w.category,
                tags=w.tags,
                published_at=w.created_at,
                workflow_data=w.workflow_data,
            )
            for w in self.list_recent_published(limit)
        ]
        return WorkflowFeed(title=settings.feed_title, link=f"{site_url}/workflows", items=items)

    def get_stats(self) -> WorkflowStats:
        """Totals across the store and published counts per category."""
        workflows = self._all_workflows()
        published = [w for w in workflows if w.status == WorkflowStatus.PUBLISHED]

        category_counts: dict[str, int] = {}
        for w in published:
            category_counts[w.category.value] = category_counts.get(w.category.value, 0) + 1

        return WorkflowStats(
            total_workflows=len(workflows),
            total_published_workflows=len(published),
            total_authors=len({w.created_by for w in workflows}),
            category_counts=category_counts,
        )

    def get_graph(self, workflow_id: str, interactive: bool = True, user_id: str | None = None) -> WorkflowGraph:
        """Lay out the graph of a published workflow (or one owned by ``user_id``)."""
        workflow = self.get_public_workflow(workflow_id)
        if workflow is None and user_id:
            workflow = self.get_owned_workflow(workflow_id, user_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")

        return layout_workflow(workflow.workflow_data, interactive)


workflow_service = WorkflowService()
