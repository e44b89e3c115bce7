"""API endpoints for workflow templates."""

from fastapi import APIRouter, Header, HTTPException, Query

from ..models.graph import WorkflowGraph
from ..models.workflow import (
    WorkflowCreate,
    WorkflowFeed,
    WorkflowListResponse,
    WorkflowStats,
    WorkflowTemplate,
    WorkflowUpdate,
)
from ..services.workflow_service import (
    WorkflowConflictError,
    WorkflowNotFoundError,
    workflow_service,
)

router = APIRouter(prefix="/workflows", tags=["workflows"])


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return user_id


def _raise_for(e: Exception, action: str):
    """Translate a service error into an HTTP error."""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, WorkflowNotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, WorkflowConflictError):
        raise HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValueError):
        raise HTTPException(status_code=400, detail=str(e))
    raise HTTPException(status_code=500, detail=f"Failed to {action}: {str(e)}")


@router.get("/stats", response_model=WorkflowStats)
async def get_stats():
    """Get totals and published counts per category."""
    return workflow_service.get_stats()


@router.get("", response_model=WorkflowListResponse)
async def list_public_workflows(
    search: str | None = None,
    category: str | None = None,
    complexity: str | None = None,
    trigger_type: str | None = None,
    limit: int | None = Query(None, ge=1),
    cursor: str | None = None,
    x_user_id: str | None = Header(None),
):
    """List published workflows, most liked first."""
    try:
        return workflow_service.list_public(
            search=search,
            category=category,
            complexity=complexity,
            trigger_type=trigger_type,
            limit=limit,
            cursor=cursor,
            user_id=x_user_id,
        )
    except Exception as e:
        _raise_for(e, "list workflows")


@router.get("/mine", response_model=WorkflowListResponse)
async def list_my_workflows(
    status: str | None = None,
    category: str | None = None,
    limit: int | None = Query(None, ge=1),
    cursor: str | None = None,
    x_user_id: str | None = Header(None),
):
    """List workflows created by the caller."""
    try:
        user_id = _require_user(x_user_id)
        return workflow_service.list_mine(user_id, status=status, category=category, limit=limit, cursor=cursor)
    except Exception as e:
        _raise_for(e, "list workflows")


@router.get("/liked", response_model=WorkflowListResponse)
async def list_liked_workflows(
    limit: int | None = Query(None, ge=1),
    cursor: str | None = None,
    x_user_id: str | None = Header(None),
):
    """List workflows liked by the caller."""
    try:
        user_id = _require_user(x_user_id)
        return workflow_service.list_liked(user_id, limit=limit, cursor=cursor)
    except Exception as e:
        _raise_for(e, "list liked workflows")


@router.get("/feed", response_model=WorkflowFeed)
async def get_feed(limit: int | None = Query(None, ge=1, le=100)):
    """Feed of the newest published workflows."""
    try:
        return workflow_service.get_feed(limit)
    except Exception as e:
        _raise_for(e, "build feed")


@router.post("", response_model=WorkflowTemplate, status_code=201)
async def create_workflow(workflow_create: WorkflowCreate, x_user_id: str | None = Header(None)):
    """Create a new workflow template."""
    user_id = _require_user(x_user_id)
    try:
        return workflow_service.create_workflow(workflow_create, user_id)
    except Exception as e:
        _raise_for(e, "create workflow")


@router.get("/{workflow_id}", response_model=WorkflowTemplate)
async def get_workflow(workflow_id: str, x_user_id: str | None = Header(None)):
    """Get a published workflow, or a draft owned by the caller."""
    workflow = workflow_service.get_public_workflow(workflow_id)
    if not workflow and x_user_id:
        workflow = workflow_service.get_owned_workflow(workflow_id, x_user_id)

    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")

    return workflow


@router.put("/{workflow_id}", response_model=WorkflowTemplate)
async def update_workflow(
    workflow_id: str,
    workflow_update: WorkflowUpdate,
    x_user_id: str | None = Header(None),
):
    """Update a workflow owned by the caller."""
    user_id = _require_user(x_user_id)
    try:
        return workflow_service.update_workflow(workflow_id, workflow_update, user_id)
    except Exception as e:
        _raise_for(e, "update workflow")


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(workflow_id: str, x_user_id: str | None = Header(None)):
    """Delete a workflow owned by the caller."""
    user_id = _require_user(x_user_id)
    try:
        workflow_service.delete_workflow(workflow_id, user_id)
    except Exception as e:
        _raise_for(e, "delete workflow")

    return None


@router.post("/{workflow_id}/duplicate", response_model=WorkflowTemplate, status_code=201)
async def duplicate_workflow(workflow_id: str, x_user_id: str | None = Header(None)):
    """Copy a workflow owned by the caller as a new draft."""
    user_id = _require_user(x_user_id)
    try:
        return workflow_service.duplicate_workflow(workflow_id, user_id)
    except Exception as e:
        _raise_for(e, "duplicate workflow")


@router.post("/{workflow_id}/like")
async def like_workflow(workflow_id: str, x_user_id: str | None = Header(None)):
    """Like a published workflow."""
    user_id = _require_user(x_user_id)
    try:
        workflow = workflow_service.like_workflow(workflow_id, user_id)
        return {"success": True, "like_count": workflow.like_count}
    except Exception as e:
        _raise_for(e, "like workflow")


@router.delete("/{workflow_id}/like")
async def unlike_workflow(workflow_id: str, x_user_id: str | None = Header(None)):
    """Remove the caller's like."""
    user_id = _require_user(x_user_id)
    try:
        workflow = workflow_service.unlike_workflow(workflow_id, user_id)
        return {"success": True, "like_count": workflow.like_count}
    except Exception as e:
        _raise_for(e, "unlike workflow")


@router.post("/{workflow_id}/view")
async def increment_view(workflow_id: str):
    """Count a preview of a published workflow."""
    try:
        workflow = workflow_service.increment_view(workflow_id)
        return {"success": True, "view_count": workflow.view_count}
    except Exception as e:
        _raise_for(e, "count view")


@router.post("/{workflow_id}/download")
async def increment_download(workflow_id: str):
    """Count a download of a published workflow."""
    try:
        workflow = workflow_service.increment_download(workflow_id)
        return {"success": True, "download_count": workflow.download_count}
    except Exception as e:
        _raise_for(e, "count download")


@router.get("/{workflow_id}/graph", response_model=WorkflowGraph)
async def get_workflow_graph(
    workflow_id: str,
    interactive: bool = True,
    x_user_id: str | None = Header(None),
):
    """Get the positioned graph of a workflow for the graph widget."""
    try:
        graph = workflow_service.get_graph(workflow_id, interactive=interactive, user_id=x_user_id)
    except Exception as e:
        _raise_for(e, "lay out workflow")

    for warning in graph.warnings:
        print(f"⚠️  [workflow {workflow_id}] {warning}")

    return graph
