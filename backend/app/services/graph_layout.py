"""Layout of stored workflow graph data for the graph widget.

Stored workflow JSON comes from many sources (exports, imports, hand edits), so
it is first normalized into a ``WorkflowGraphDescription`` and only then laid
out. Normalization never raises: anything it cannot make sense of is skipped.
"""

import math
from typing import Any

from ..models.graph import (
    GraphEdge,
    GraphNode,
    NodePosition,
    NodeRecord,
    TargetReference,
    WorkflowGraph,
    WorkflowGraphDescription,
)

# Fallback grid for nodes without a stored position
GRID_COLUMNS = 3
GRID_X_SPACING = 200
GRID_Y_SPACING = 100

DEFAULT_NODE_LABEL = "Node"

# (icon, color) per category tag
NODE_STYLES: dict[str, tuple[str, str]] = {
    "trigger": ("play", "green"),
    "cron": ("play", "green"),
    "webhook": ("play", "green"),
    "http": ("globe", "blue"),
    "api": ("globe", "blue"),
    "database": ("database", "purple"),
    "mysql": ("database", "purple"),
    "postgres": ("database", "purple"),
    "email": ("mail", "orange"),
    "gmail": ("mail", "orange"),
    "code": ("code", "red"),
    "javascript": ("code", "red"),
    "file": ("file-text", "gray"),
    "csv": ("file-text", "gray"),
}
DEFAULT_NODE_STYLE = ("settings", "gray")


def get_node_style(node_type: str | None) -> tuple[str, str]:
    """Return the (icon, color) pair for a node category tag."""
    if not node_type:
        return DEFAULT_NODE_STYLE
    return NODE_STYLES.get(node_type.lower(), DEFAULT_NODE_STYLE)


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _normalize_node(raw: Any) -> NodeRecord:
    if not isinstance(raw, dict):
        return NodeRecord()

    name = raw.get("name")
    node_type = raw.get("type")
    position = raw.get("position")
    parameters = raw.get("parameters")

    if not (
        isinstance(position, (list, tuple))
        and len(position) >= 2
        and _is_number(position[0])
        and _is_number(position[1])
    ):
        position = None

    return NodeRecord(
        name=name if isinstance(name, str) else None,
        type=node_type if isinstance(node_type, str) else None,
        position=(position[0], position[1]) if position is not None else None,
        parameters=parameters if isinstance(parameters, dict) else {},
    )


def _normalize_target(raw: Any, list_position: int = 0) -> TargetReference | None:
    if not isinstance(raw, dict):
        return None

    node = raw.get("node")
    if isinstance(node, int) and not isinstance(node, bool):
        node = str(node)
    if not isinstance(node, str):
        return None

    index = raw.get("index")
    if isinstance(index, float) and index.is_integer():
        index = int(index)
    if not isinstance(index, int) or isinstance(index, bool):
        index = 0

    return TargetReference(node=node, index=index, list_position=list_position)


def _normalize_slots(group: Any) -> dict[str, list[TargetReference]]:
    """Turn one ``connections`` entry into ``{output slot: [targets]}``.

    ``main`` may be a slot map or, in older exports, a list whose first element
    is the slot map. A slot may hold a single target instead of a list.
    """
    if not isinstance(group, dict):
        return {}

    main = group.get("main") or {}
    if isinstance(main, list):
        main = main[0] if main else {}
    if not isinstance(main, dict):
        return {}

    slots: dict[str, list[TargetReference]] = {}
    for output_slot, raw_targets in main.items():
        if not isinstance(raw_targets, list):
            raw_targets = [raw_targets] if raw_targets else []

        targets = []
        for list_position, raw_target in enumerate(raw_targets):
            target = _normalize_target(raw_target, list_position)
            if target is not None:
                targets.append(target)
        slots[str(output_slot)] = targets

    return slots


def normalize_description(workflow_data: Any) -> WorkflowGraphDescription | None:
    """Normalize raw workflow JSON into its canonical form.

    Returns None when there is no graph to draw (no data, or no ``nodes``).
    """
    if not isinstance(workflow_data, dict):
        return None

    raw_nodes = workflow_data.get("nodes")
    if not isinstance(raw_nodes, dict):
        return None

    raw_connections = workflow_data.get("connections")
    if not isinstance(raw_connections, dict):
        raw_connections = {}

    return WorkflowGraphDescription(
        nodes={str(node_id): _normalize_node(raw) for node_id, raw in raw_nodes.items()},
        connections={
            str(source_id): _normalize_slots(group)
            for source_id, group in raw_connections.items()
        },
    )


def fallback_position(index: int) -> NodePosition:
    """Grid position for the node at ordinal ``index``."""
    return NodePosition(
        x=(index % GRID_COLUMNS) * GRID_X_SPACING,
        y=(index // GRID_COLUMNS) * GRID_Y_SPACING,
    )


def layout_description(description: WorkflowGraphDescription, interactive: bool = True) -> WorkflowGraph:
    """Lay out an already normalized workflow description."""
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    warnings: list[str] = []

    for index, (node_id, record) in enumerate(description.nodes.items()):
        if record.position is not None:
            position = NodePosition(x=record.position[0], y=record.position[1])
        else:
            position = fallback_position(index)

        icon, color = get_node_style(record.type)
        nodes.append(
            GraphNode(
                id=node_id,
                position=position,
                data={
                    "label": record.name or record.type or DEFAULT_NODE_LABEL,
                    "nodeType": record.type,
                    "name": record.name,
                    **record.parameters,
                },
                node_type=record.type,
                icon=icon,
                color=color,
                draggable=interactive,
            )
        )

    for source_id, slots in description.connections.items():
        if source_id not in description.nodes:
            warnings.append(f"Connections from unknown node '{source_id}'")

        for output_slot, targets in slots.items():
            for target in targets:
                if target.node not in description.nodes:
                    warnings.append(
                        f"Connection {source_id}[{output_slot}] points to unknown node '{target.node}'"
                    )
                edges.append(
                    GraphEdge(
                        id=f"{source_id}-{output_slot}-{target.node}-{target.index}-{target.list_position}",
                        source=source_id,
                        target=target.node,
                        source_handle=f"output-{output_slot}",
                        target_handle=f"input-{target.index}",
                    )
                )

    return WorkflowGraph(nodes=nodes, edges=edges, warnings=warnings)


def layout_workflow(workflow_data: Any, interactive: bool = True) -> WorkflowGraph:
    """Convert stored workflow JSON into a positioned graph.

    Args:
        workflow_data: Raw workflow JSON (``nodes`` and ``connections`` maps), or None
        interactive: Whether the rendered nodes can be dragged

    Returns:
        The positioned graph; empty when there is nothing to draw
    """
    description = normalize_description(workflow_data)
    if description is None:
        return WorkflowGraph()
    return layout_description(description, interactive)
