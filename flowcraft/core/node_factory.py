"""Default payloads for newly created nodes."""

from flowcraft.core.graph_schema import (
    EndNodeData,
    NodeData,
    NodeType,
    StartNodeData,
    TransformNodeData,
    TransformOperation,
)

DEFAULT_START_PAYLOAD = '{"message": "hello"}'


def create_node_data(node_type: NodeType | str) -> NodeData:
    """Build the default payload for a node type.

    Raises:
        ValueError: If ``node_type`` is not a known node type.
    """
    try:
        node_type = NodeType(node_type)
    except ValueError:
        raise ValueError(f"Unknown node type: {node_type}") from None

    if node_type == NodeType.START:
        return StartNodeData(label="Start", payload=DEFAULT_START_PAYLOAD)
    if node_type == NodeType.TRANSFORM:
        return TransformNodeData(
            label="Transform", operation=TransformOperation.UPPERCASE.value, value=None
        )
    return EndNodeData(label="End", received_payload=None)


def get_node_defaults(node_type: NodeType | str) -> dict:
    """Type and default payload of a new node, as a ``{"type", "data"}`` dict."""
    data = create_node_data(node_type)
    return {"type": NodeType(node_type), "data": data}
