"""Graph workflow schema definitions using Pydantic models.

Workflows are directed graphs of typed nodes (START, TRANSFORM, END). Data
flows along edges: each node's output becomes the input of every node it
points at. Models serialize with the camelCase field names used by exported
workflow files (``selectedNodeId``, ``nodeLabel``...), while Python code uses
snake_case attributes.
"""

import time
from enum import Enum
from typing import Any

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EXPORT_VERSION = "1.0.0"


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class NodeType(str, Enum):
    """Supported node types in workflow graphs"""

    START = "start"  # Emits the parsed JSON payload
    TRANSFORM = "transform"  # Applies one named operation to its input
    END = "end"  # Sink, passes its input through


class TransformOperation(str, Enum):
    """Operations a TRANSFORM node can apply"""

    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    APPEND = "append"
    MULTIPLY = "multiply"


class Position(BaseModel):
    """Canvas position of a node"""

    x: float = 0.0
    y: float = 0.0


class BaseNodeData(BaseModel):
    """Fields shared by every node payload"""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    label: str


class StartNodeData(BaseNodeData):
    """Payload for START nodes - raw JSON text parsed at execution time"""

    payload: str = ""


class TransformNodeData(BaseNodeData):
    """Payload for TRANSFORM nodes.

    ``operation`` is a plain string so that graphs carrying an unknown
    operation still load; the engine rejects it when the node runs.
    """

    operation: str = TransformOperation.UPPERCASE.value
    value: str | int | float | None = None


class EndNodeData(BaseNodeData):
    """Payload for END nodes"""

    received_payload: Any = Field(default=None, alias="receivedPayload")


NodeData = StartNodeData | TransformNodeData | EndNodeData

NODE_DATA_MODELS: dict[NodeType, type[BaseNodeData]] = {
    NodeType.START: StartNodeData,
    NodeType.TRANSFORM: TransformNodeData,
    NodeType.END: EndNodeData,
}


class Node(BaseModel):
    """Graph node with a type-specific payload"""

    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData

    @model_validator(mode="before")
    @classmethod
    def parse_data_for_type(cls, values: Any) -> Any:
        """Parse raw ``data`` with the payload model matching ``type``."""
        if not isinstance(values, dict):
            return values
        data = values.get("data")
        try:
            node_type = NodeType(values.get("type"))
        except ValueError:
            return values
        if isinstance(data, dict):
            values = {**values, "data": NODE_DATA_MODELS[node_type].model_validate(data)}
        return values

    @model_validator(mode="after")
    def validate_data_for_type(self) -> "Node":
        """Ensure the payload model matches the node type."""
        expected = NODE_DATA_MODELS[self.type]
        if type(self.data) is not expected:
            raise ValueError(
                f"Node '{self.id}' of type '{self.type.value}' requires "
                f"'{expected.__name__}', got '{type(self.data).__name__}'"
            )
        return self

    @property
    def label(self) -> str:
        return self.data.label


class Edge(BaseModel):
    """Directed edge between nodes"""

    id: str
    source: str  # Source node ID
    target: str  # Target node ID

    @staticmethod
    def make_id(source: str, target: str) -> str:
        return f"e{source}-{target}"

    @classmethod
    def between(cls, source: str, target: str) -> "Edge":
        return cls(id=cls.make_id(source, target), source=source, target=target)


class WorkflowState(BaseModel):
    """Complete editor state - the unit stored by undo/redo history"""

    model_config = ConfigDict(populate_by_name=True)

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    selected_node_id: str | None = Field(default=None, alias="selectedNodeId")
    is_executing: bool = Field(default=False, alias="isExecuting")


class ExecutionLog(BaseModel):
    """One entry of an execution trace"""

    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(alias="nodeId")
    node_label: str = Field(alias="nodeLabel")
    node_type: str = Field(alias="nodeType")
    input: Any = None
    output: Any = None
    timestamp: int = Field(default_factory=now_millis)


class WorkflowGraph(BaseModel):
    """Nodes and edges of a workflow, with structural analysis"""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def default_missing_lists(cls, v):
        return [] if v is None else v

    def get_start_node(self) -> Node | None:
        """First START node in declaration order."""
        return next((n for n in self.nodes if n.type == NodeType.START), None)

    def can_execute(self) -> bool:
        has_start = any(n.type == NodeType.START for n in self.nodes)
        has_end = any(n.type == NodeType.END for n in self.nodes)
        return has_start and has_end and len(self.nodes) >= 2

    def validate_graph(self) -> list[str]:
        """
        Validate graph structure using NetworkX.
        Returns list of validation errors.
        """
        errors = []

        seen_node_ids = set()
        for node in self.nodes:
            if node.id in seen_node_ids:
                errors.append(f"Duplicate node ID: '{node.id}'")
            seen_node_ids.add(node.id)
        node_ids = seen_node_ids
        node_types = {n.id: n.type for n in reversed(self.nodes)}

        seen_edge_pairs = set()
        for edge in self.edges:
            pair = (edge.source, edge.target)
            if pair in seen_edge_pairs:
                errors.append(f"Duplicate edge from '{edge.source}' to '{edge.target}'")
            seen_edge_pairs.add(pair)

        for edge in self.edges:
            if edge.source not in node_ids:
                errors.append(f"Edge {edge.id}: source '{edge.source}' not found")
            if edge.target not in node_ids:
                errors.append(f"Edge {edge.id}: target '{edge.target}' not found")
            if node_types.get(edge.source) == NodeType.END:
                errors.append(f"Edge {edge.id}: end node '{edge.source}' cannot have outputs")
            if node_types.get(edge.target) == NodeType.START:
                errors.append(f"Edge {edge.id}: start node '{edge.target}' cannot have inputs")

        incoming: dict[str, int] = {}
        for edge in self.edges:
            incoming[edge.target] = incoming.get(edge.target, 0) + 1
        for target, count in incoming.items():
            if count > 1:
                errors.append(f"Node '{target}' has {count} inputs (at most one allowed)")

        starts = [n for n in self.nodes if n.type == NodeType.START]
        if not starts:
            errors.append("No start node found")
        elif len(starts) > 1:
            errors.append(
                f"Multiple start nodes: only '{starts[0].id}' runs, "
                f"{[n.id for n in starts[1:]]} are ignored"
            )
        if not any(n.type == NodeType.END for n in self.nodes):
            errors.append("No end node found")

        G = self._to_networkx()

        # Limit cycle enumeration to prevent blow-up on dense graphs
        MAX_CYCLES_TO_CHECK = 100
        for cycle_count, cycle in enumerate(nx.simple_cycles(G), start=1):
            if cycle_count > MAX_CYCLES_TO_CHECK:
                errors.append(
                    f"Too many cycles to validate (>{MAX_CYCLES_TO_CHECK}). "
                    f"Simplify graph structure."
                )
                break
            errors.append(f"Cycle detected: {' -> '.join(cycle)}")

        if starts:
            reachable = nx.descendants(G, starts[0].id) | {starts[0].id}
            for node in self.nodes:
                if node.id not in reachable:
                    errors.append(f"Node '{node.id}' is not reachable from the start node")

        return errors

    def _to_networkx(self) -> nx.DiGraph:
        """Convert to NetworkX DiGraph for analysis (dangling edges are dropped)"""
        G = nx.DiGraph()
        for node in self.nodes:
            G.add_node(node.id)
        for edge in self.edges:
            if edge.source in G and edge.target in G:
                G.add_edge(edge.source, edge.target)
        return G


class WorkflowExport(WorkflowGraph):
    """Persisted workflow file: ``{version, timestamp, nodes, edges}``"""

    version: str = EXPORT_VERSION
    timestamp: int = Field(default_factory=now_millis)
