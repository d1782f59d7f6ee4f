"""Core modules for flowcraft."""

from flowcraft.core.editor import WorkflowEditor
from flowcraft.core.graph_engine import WorkflowEngine
from flowcraft.core.graph_schema import (
    Edge,
    ExecutionLog,
    Node,
    NodeType,
    WorkflowExport,
    WorkflowState,
)
from flowcraft.core.graph_state import WorkflowGraphModel
from flowcraft.core.history import HistoryEngine
from flowcraft.core.recording import RecordingScheduler

__all__ = [
    "Edge",
    "ExecutionLog",
    "HistoryEngine",
    "Node",
    "NodeType",
    "RecordingScheduler",
    "WorkflowEditor",
    "WorkflowEngine",
    "WorkflowExport",
    "WorkflowGraphModel",
    "WorkflowState",
]
