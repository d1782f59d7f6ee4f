"""CLI UI components for terminal-based workflow visualization.

This package provides rich terminal rendering for:
- Workflow graphs as trees rooted at the start node
- Execution traces as tables
"""

from flowcraft.cli_ui.graph_renderer import TerminalGraphRenderer, TraceTableRenderer

__all__ = [
    "TerminalGraphRenderer",
    "TraceTableRenderer",
]
