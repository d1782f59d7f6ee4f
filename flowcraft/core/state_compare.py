"""Comparison and canonical serialization of editor state.

Positions are compared with a one-unit tolerance so that sub-pixel jitter
from dragging does not count as an edit. Selection and the executing flag are
not part of the comparison.
"""

from __future__ import annotations

import json
import math
from typing import Any

from flowcraft.core.graph_schema import Node, WorkflowState

POSITION_TOLERANCE = 1.0


def clone_state(state: WorkflowState) -> WorkflowState:
    """Structural deep copy; the result shares no mutable data with ``state``."""
    return state.model_copy(deep=True)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _node_data(node: Node) -> dict[str, Any]:
    return node.data.model_dump(mode="json", by_alias=True)


def are_states_equal(state1: WorkflowState, state2: WorkflowState) -> bool:
    """Compare two states node by node and edge by edge, in order."""
    if len(state1.nodes) != len(state2.nodes):
        return False
    if len(state1.edges) != len(state2.edges):
        return False

    for node1, node2 in zip(state1.nodes, state2.nodes):
        if node1.id != node2.id or node1.type != node2.type:
            return False
        if abs(node1.position.x - node2.position.x) > POSITION_TOLERANCE:
            return False
        if abs(node1.position.y - node2.position.y) > POSITION_TOLERANCE:
            return False
        if _node_data(node1) != _node_data(node2):
            return False

    for edge1, edge2 in zip(state1.edges, state2.edges):
        if (edge1.id, edge1.source, edge1.target) != (edge2.id, edge2.source, edge2.target):
            return False

    return True


def serialize_state(state: WorkflowState) -> str:
    """Canonical JSON text of the graph used for history deduplication.

    Positions are rounded to whole units; selection and the executing flag
    are dropped.
    """
    simplified = {
        "nodes": [
            {
                "id": node.id,
                "type": node.type.value,
                "position": {
                    "x": _round_half_up(node.position.x),
                    "y": _round_half_up(node.position.y),
                },
                "data": _node_data(node),
            }
            for node in state.nodes
        ],
        "edges": [
            {"id": edge.id, "source": edge.source, "target": edge.target}
            for edge in state.edges
        ],
    }
    return json.dumps(simplified, separators=(",", ":"))
