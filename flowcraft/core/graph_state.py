"""Mutable editor state for a single workflow.

``WorkflowGraphModel`` holds the nodes, edges, selection and executing flag
of one editor. Every mutation replaces the affected list rather than editing
it in place and then notifies subscribers, which is how the history recorder
and the autosaver learn about edits.

Edge creation enforces the graph's structural rules; a refused edge is not an
error, ``add_edge`` simply returns ``None``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from flowcraft.core.graph_schema import (
    NODE_DATA_MODELS,
    Edge,
    Node,
    NodeData,
    NodeType,
    Position,
    WorkflowExport,
    WorkflowGraph,
    WorkflowState,
    now_millis,
)
from flowcraft.core.node_factory import create_node_data
from flowcraft.core.state_compare import clone_state

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """What part of the model a notification is about"""

    NODES = "nodes"
    EDGES = "edges"
    SELECTION = "selection"
    EXECUTING = "executing"
    STATE = "state"  # Wholesale replacement (undo/redo, import, clear)


Listener = Callable[["WorkflowGraphModel", ChangeKind], None]


class WorkflowGraphModel:
    """Editor state container with primitive mutation operations.

    ``lock`` is shared with timer callbacks (see ``ThreadingTimerScheduler``)
    so that debounced recording never runs in the middle of a mutation.
    """

    def __init__(self, lock: threading.RLock | None = None):
        self.nodes: list[Node] = []
        self.edges: list[Edge] = []
        self.selected_node_id: str | None = None
        self.is_executing = False
        self.lock = lock or threading.RLock()
        self._listeners: list[Listener] = []

    # ========== Subscriptions ==========

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: ChangeKind) -> None:
        for listener in list(self._listeners):
            listener(self, change)

    # ========== Queries ==========

    @property
    def selected_node(self) -> Node | None:
        return self.get_node_by_id(self.selected_node_id) if self.selected_node_id else None

    def get_node_by_id(self, node_id: str) -> Node | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def connected_nodes(self, node_id: str) -> dict[str, list[Node]]:
        """Nodes feeding into and fed by ``node_id``."""
        incoming = [self.get_node_by_id(e.source) for e in self.edges if e.target == node_id]
        outgoing = [self.get_node_by_id(e.target) for e in self.edges if e.source == node_id]
        return {
            "incoming": [n for n in incoming if n is not None],
            "outgoing": [n for n in outgoing if n is not None],
        }

    @property
    def start_node(self) -> Node | None:
        return next((n for n in self.nodes if n.type == NodeType.START), None)

    @property
    def can_execute(self) -> bool:
        return WorkflowGraph(nodes=self.nodes, edges=self.edges).can_execute()

    # ========== Node mutations ==========

    def add_node(
        self,
        node_type: NodeType | str,
        position: Position | Mapping[str, float] | None = None,
        data: NodeData | Mapping[str, Any] | None = None,
    ) -> str:
        """Append a node and return its generated ID."""
        node_type = NodeType(node_type)
        node_id = f"{node_type.value}-{now_millis()}-{uuid.uuid4().hex[:9]}"
        node = Node(
            id=node_id,
            type=node_type,
            position=Position.model_validate(position or {}),
            data=data if data is not None else create_node_data(node_type),
        )
        with self.lock:
            self.nodes = [*self.nodes, node]
            self._notify(ChangeKind.NODES)
        return node_id

    def update_node(self, node_id: str, data: Mapping[str, Any]) -> None:
        """Merge ``data`` into a node's payload. Unknown IDs are ignored."""
        with self.lock:
            for index, node in enumerate(self.nodes):
                if node.id != node_id:
                    continue
                merged = {**node.data.model_dump(), **data}
                new_data = NODE_DATA_MODELS[node.type].model_validate(merged)
                updated = node.model_copy(update={"data": new_data})
                self.nodes = [*self.nodes[:index], updated, *self.nodes[index + 1 :]]
                self._notify(ChangeKind.NODES)
                return

    def update_node_position(self, node_id: str, position: Position | Mapping[str, float]) -> None:
        with self.lock:
            for index, node in enumerate(self.nodes):
                if node.id != node_id:
                    continue
                updated = node.model_copy(update={"position": Position.model_validate(position)})
                self.nodes = [*self.nodes[:index], updated, *self.nodes[index + 1 :]]
                self._notify(ChangeKind.NODES)
                return

    def delete_node(self, node_id: str) -> None:
        """Remove a node together with every edge attached to it."""
        with self.lock:
            self.nodes = [n for n in self.nodes if n.id != node_id]
            self.edges = [e for e in self.edges if e.source != node_id and e.target != node_id]
            if self.selected_node_id == node_id:
                self.selected_node_id = None
            self._notify(ChangeKind.NODES)

    # ========== Edge mutations ==========

    def add_edge(self, source: str, target: str) -> Edge | None:
        """Connect ``source`` to ``target`` if the graph rules allow it.

        Refused (returns None) when the pair already exists, either node is
        missing, the source is an END node, the target is a START node, or the
        target already has an input.
        """
        with self.lock:
            if any(e.source == source and e.target == target for e in self.edges):
                return None

            source_node = self.get_node_by_id(source)
            target_node = self.get_node_by_id(target)
            if source_node is None or target_node is None:
                logger.debug("Edge %s -> %s refused: unknown node", source, target)
                return None
            if source_node.type == NodeType.END:
                logger.debug("Edge %s -> %s refused: end nodes have no outputs", source, target)
                return None
            if target_node.type == NodeType.START:
                logger.debug("Edge %s -> %s refused: start nodes have no inputs", source, target)
                return None
            if any(e.target == target for e in self.edges):
                logger.debug("Edge %s -> %s refused: target already has an input", source, target)
                return None

            edge = Edge.between(source, target)
            self.edges = [*self.edges, edge]
            self._notify(ChangeKind.EDGES)
            return edge

    def remove_edge(self, edge_id: str) -> None:
        with self.lock:
            self.edges = [e for e in self.edges if e.id != edge_id]
            self._notify(ChangeKind.EDGES)

    # ========== Flags ==========

    def set_selected_node(self, node_id: str | None) -> None:
        with self.lock:
            self.selected_node_id = node_id
            self._notify(ChangeKind.SELECTION)

    def set_executing(self, value: bool) -> None:
        with self.lock:
            self.is_executing = value
            self._notify(ChangeKind.EXECUTING)

    # ========== Whole-state operations ==========

    def snapshot(self) -> WorkflowState:
        """Deep copy of the current state."""
        with self.lock:
            return clone_state(
                WorkflowState(
                    nodes=self.nodes,
                    edges=self.edges,
                    selected_node_id=self.selected_node_id,
                    is_executing=self.is_executing,
                )
            )

    def replace_state(self, state: WorkflowState) -> None:
        """Overwrite nodes, edges, selection and executing flag."""
        with self.lock:
            self.nodes = list(state.nodes)
            self.edges = list(state.edges)
            self.selected_node_id = state.selected_node_id
            self.is_executing = state.is_executing
            self._notify(ChangeKind.STATE)

    def export_workflow(self) -> WorkflowExport:
        with self.lock:
            return WorkflowExport(nodes=list(self.nodes), edges=list(self.edges))

    def import_workflow(self, data: WorkflowExport | Mapping[str, Any]) -> None:
        """Load an exported workflow; selection and executing flag are reset."""
        workflow = data if isinstance(data, WorkflowExport) else WorkflowExport.model_validate(data)
        self.replace_state(WorkflowState(nodes=workflow.nodes, edges=workflow.edges))

    def clear_workflow(self) -> None:
        self.replace_state(WorkflowState())
