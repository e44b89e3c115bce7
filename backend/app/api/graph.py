"""API endpoints for laying out raw workflow graphs."""

from typing import Any

from fastapi import APIRouter, Body

from ..models.graph import WorkflowGraph
from ..services.graph_layout import layout_workflow

router = APIRouter(prefix="/graph", tags=["graph"])


@router.post("/layout", response_model=WorkflowGraph)
async def layout_graph(workflow_data: Any = Body(None), interactive: bool = True):
    """
    Lay out workflow JSON that has not been saved yet (e.g. an import preview).

    Args:
        workflow_data: Raw workflow JSON with ``nodes`` and ``connections``
        interactive: Whether nodes should be draggable

    Returns:
        Positioned nodes and edges
    """
    graph = layout_workflow(workflow_data, interactive)

    for warning in graph.warnings:
        print(f"⚠️  [graph layout] {warning}")

    return graph
