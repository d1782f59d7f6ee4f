"""Single-pass workflow graph execution engine.

This module walks a workflow graph depth-first from its start node:
- START nodes emit their parsed JSON payload
- TRANSFORM nodes apply one named operation to their input
- END nodes pass their input through
Each visited node appends one ``ExecutionLog`` entry to the trace. A node
reached twice in one run means the graph has a cycle and the run fails.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from flowcraft.core.errors import (
    CycleDetectedError,
    DanglingEdgeError,
    EmptyWorkflowError,
    InvalidStartPayloadError,
    MissingEndError,
    MissingStartError,
    MissingTransformInputError,
    NodeExecutionError,
    TransformError,
    TransformOperationError,
    UnknownNodeTypeError,
    WorkflowExecutionError,
)
from flowcraft.core.graph_schema import (
    Edge,
    ExecutionLog,
    Node,
    NodeType,
    StartNodeData,
    TransformNodeData,
    now_millis,
)
from flowcraft.core.transforms import apply_transformation

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported JSON constant: {name}")


class WorkflowEngine:
    """
    Executes workflow graphs and records an execution trace.

    The engine keeps only the trace of the current run; every ``execute()``
    call starts from an empty trace. One engine may be reused for any number
    of runs but is not meant to run two graphs at once.
    """

    def __init__(self, clock: Callable[[], int] = now_millis):
        self.clock = clock
        self._logs: list[ExecutionLog] = []

    @property
    def logs(self) -> list[ExecutionLog]:
        """Trace of the most recent run (partial if it failed)."""
        return list(self._logs)

    def execute(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> list[ExecutionLog]:
        """
        Run the workflow from its start node.

        Args:
            nodes: Workflow nodes; the first START node is the entry point
            edges: Workflow edges; outgoing edges are followed in list order

        Returns:
            The execution trace, one entry per visited node in visit order

        Raises:
            EmptyWorkflowError, MissingStartError, MissingEndError: Before traversal
            WorkflowExecutionError: Any failure during traversal, wrapping the
                original error and naming the last node that completed
        """
        self._logs = []

        if not nodes:
            raise EmptyWorkflowError("Cannot execute workflow: No nodes found")

        start_node = next((n for n in nodes if n.type == NodeType.START), None)
        if start_node is None:
            raise MissingStartError(
                "Cannot execute workflow: No start node found. "
                "Add a start node to begin execution."
            )

        if not any(n.type == NodeType.END for n in nodes):
            raise MissingEndError(
                "Cannot execute workflow: No end node found. "
                "Add an end node to complete execution."
            )

        node_map: dict[str, Node] = {}
        for node in nodes:
            node_map.setdefault(node.id, node)

        # Outgoing edges per source, preserving insertion order
        edge_map: dict[str, list[Edge]] = {}
        for edge in edges:
            edge_map.setdefault(edge.source, []).append(edge)

        try:
            self._run(start_node, node_map, edge_map)
        except Exception as e:
            last_entry = self._logs[-1] if self._logs else None
            error = WorkflowExecutionError(e, last_entry)
            logger.debug("Workflow execution failed: %s", error)
            raise error from e

        logger.info("Workflow executed: %d node(s) visited", len(self._logs))
        return list(self._logs)

    def _run(
        self,
        start_node: Node,
        node_map: dict[str, Node],
        edge_map: dict[str, list[Edge]],
    ) -> None:
        """Depth-first traversal using an explicit stack.

        Stack items are ``(target_id, input)`` pairs resolved when popped, so a
        dangling edge fails at the same point in the walk as it would with
        recursion: after every earlier sibling's subtree has run.
        """
        visited: set[str] = set()
        stack: list[tuple[str, Any]] = [(start_node.id, None)]

        while stack:
            node_id, input_value = stack.pop()
            node = node_map.get(node_id)
            if node is None:
                raise DanglingEdgeError(node_id)
            if node.id in visited:
                raise CycleDetectedError(node.id, node.label)
            visited.add(node.id)

            output = self._evaluate(node, input_value)
            self._logs.append(
                ExecutionLog(
                    node_id=node.id,
                    node_label=node.label,
                    node_type=node.type.value,
                    input=input_value,
                    output=output,
                    timestamp=self.clock(),
                )
            )

            # Reversed so the first edge is popped (and run) first
            for edge in reversed(edge_map.get(node.id, [])):
                stack.append((edge.target, output))

    def _evaluate(self, node: Node, input_value: Any) -> Any:
        """Compute a node's output, wrapping failures with the node's identity."""
        try:
            if node.type == NodeType.START:
                return self._execute_start_node(node.data)
            if node.type == NodeType.TRANSFORM:
                return self._execute_transform_node(node.data, input_value)
            if node.type == NodeType.END:
                return input_value
            raise UnknownNodeTypeError(f"Unknown node type: {node.type}")
        except Exception as e:
            raise NodeExecutionError(node, e) from e

    def _execute_start_node(self, data: StartNodeData) -> Any:
        try:
            return json.loads(data.payload, parse_constant=_reject_constant)
        except ValueError:
            raise InvalidStartPayloadError("Invalid JSON in start node payload") from None

    def _execute_transform_node(self, data: TransformNodeData, input_value: Any) -> Any:
        if input_value is None:
            raise MissingTransformInputError("Transform node requires input from previous node")

        try:
            return apply_transformation(input_value, data.operation, data.value)
        except TransformError as e:
            raise TransformOperationError(data.operation, e) from e
