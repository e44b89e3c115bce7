from pydantic import BaseModel, Field
from typing import Any


class NodeRecord(BaseModel):
    """A stored workflow node, as found under ``nodes`` in workflow JSON."""

    name: str | None = Field(None, description="Display label")
    type: str | None = Field(None, description="Free-form category tag (connector kind)")
    position: tuple[float, float] | None = Field(None, description="Stored X,Y position")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Node configuration, not interpreted")


class TargetReference(BaseModel):
    """Destination of a connection: a node and one of its input slots."""

    node: str = Field(..., description="Destination node ID")
    index: int = Field(0, description="Destination input slot")
    list_position: int = Field(0, description="Position of the reference in its slot's target list")


class WorkflowGraphDescription(BaseModel):
    """Canonical form of stored workflow graph data.

    ``connections`` maps source node ID -> output slot -> target references.
    """

    nodes: dict[str, NodeRecord] = Field(default_factory=dict)
    connections: dict[str, dict[str, list[TargetReference]]] = Field(default_factory=dict)


class NodePosition(BaseModel):
    x: float
    y: float


class GraphNode(BaseModel):
    """A positioned node ready for the graph widget."""

    id: str = Field(..., description="Unique node ID")
    type: str = Field("custom", description="Widget node renderer")
    position: NodePosition = Field(..., description="X,Y position")
    data: dict[str, Any] = Field(..., description="Display data (label, nodeType, name, parameters)")
    node_type: str | None = Field(None, description="Category tag of the source node")
    icon: str = Field("settings", description="Icon identifier for UI")
    color: str = Field("gray", description="Color scheme for UI")
    draggable: bool = Field(True, description="Whether the widget lets the user move this node")


class EdgeStyle(BaseModel):
    stroke: str = "#718096"
    stroke_width: int = 2


class GraphEdge(BaseModel):
    """A directed edge between two node slots."""

    id: str = Field(..., description="Unique edge ID")
    source: str = Field(..., description="Source node ID")
    target: str = Field(..., description="Target node ID")
    source_handle: str = Field(..., description="Source connection point (output-<slot>)")
    target_handle: str = Field(..., description="Target connection point (input-<slot>)")
    type: str = Field("smoothstep", description="Widget edge renderer")
    animated: bool = False
    style: EdgeStyle = Field(default_factory=EdgeStyle)


class WorkflowGraph(BaseModel):
    """Render-ready graph of a workflow."""

    nodes: list[GraphNode] = Field(default_factory=list, description="Graph nodes")
    edges: list[GraphEdge] = Field(default_factory=list, description="Graph edges")
    warnings: list[str] = Field(default_factory=list, description="Data-quality problems found while laying out")
