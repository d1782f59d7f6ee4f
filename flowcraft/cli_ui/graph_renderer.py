"""Terminal rendering of workflow graphs and execution traces using Rich."""

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from flowcraft.core.graph_schema import (
    Edge,
    ExecutionLog,
    Node,
    NodeType,
    TransformNodeData,
    WorkflowGraph,
)


def _describe(node: Node) -> str:
    """Short, markup-safe description of what a node does."""
    if isinstance(node.data, TransformNodeData):
        if node.data.value is None:
            return escape(node.data.operation)
        return escape(f"{node.data.operation}({node.data.value!r})")
    return ""


class TerminalGraphRenderer:
    """
    Renders workflow graphs as a Rich tree rooted at the start node.

    Nodes not reachable from the start node are listed under a separate
    branch so that nothing in the graph is hidden.
    """

    NODE_STYLES = {
        NodeType.START: ("[>]", "green"),
        NodeType.TRANSFORM: ("[~]", "cyan"),
        NodeType.END: ("[#]", "magenta"),
    }

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _build_edge_map(self, workflow: WorkflowGraph) -> dict[str, list[Edge]]:
        """Outgoing edges per source node ID, in declaration order."""
        edge_map: dict[str, list[Edge]] = {n.id: [] for n in workflow.nodes}
        for edge in workflow.edges:
            if edge.source in edge_map:
                edge_map[edge.source].append(edge)
        return edge_map

    def render_as_tree(self, workflow: WorkflowGraph, title: str = "Workflow") -> Tree:
        tree = Tree(f"[bold]{escape(title)}[/]")

        node_map = {n.id: n for n in reversed(workflow.nodes)}
        edge_map = self._build_edge_map(workflow)

        start = workflow.get_start_node()
        if start is None:
            tree.add("[red]Error: No start node[/]")
            return tree

        visited: set[str] = set()
        self._add_node_to_tree(tree, start, node_map, edge_map, visited)

        orphans = [n for n in workflow.nodes if n.id not in visited]
        if orphans:
            branch = tree.add("[dim]Unreachable[/]")
            for node in orphans:
                branch.add(self._node_text(node))

        return tree

    def _node_text(self, node: Node) -> str:
        symbol, color = self.NODE_STYLES.get(node.type, ("[ ]", "white"))
        # Escape user-controlled strings to prevent Rich markup injection
        text = f"[{color}]{escape(symbol)} {escape(node.label)}[/] [dim]{escape(node.id)}[/]"
        description = _describe(node)
        if description:
            text += f" {description}"
        return text

    def _add_node_to_tree(
        self,
        parent: Tree,
        node: Node,
        node_map: dict[str, Node],
        edge_map: dict[str, list[Edge]],
        visited: set[str],
    ) -> None:
        if node.id in visited:
            parent.add(f"[red]↩ {escape(node.id)} (cycle)[/]")
            return
        visited.add(node.id)

        branch = parent.add(self._node_text(node))
        for edge in edge_map.get(node.id, []):
            child = node_map.get(edge.target)
            if child is None:
                branch.add(f"[red]✗ missing node {escape(edge.target)}[/]")
                continue
            self._add_node_to_tree(branch, child, node_map, edge_map, visited)


class TraceTableRenderer:
    """Renders an execution trace as a Rich table.

    All user-controlled strings (labels, inputs, outputs) are escaped.
    """

    MAX_VALUE_WIDTH = 40

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _format_value(self, value: Any) -> str:
        text = escape(json.dumps(value, default=str))
        if len(text) > self.MAX_VALUE_WIDTH:
            text = text[: self.MAX_VALUE_WIDTH - 3] + "..."
        return text

    def render_trace(self, logs: list[ExecutionLog], title: str = "Execution trace") -> Table:
        table = Table(title=escape(title))

        table.add_column("#", justify="right", style="dim")
        table.add_column("Node", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Input", max_width=self.MAX_VALUE_WIDTH)
        table.add_column("Output", max_width=self.MAX_VALUE_WIDTH)

        for index, entry in enumerate(logs, start=1):
            table.add_row(
                str(index),
                escape(entry.node_label),
                entry.node_type,
                self._format_value(entry.input),
                self._format_value(entry.output),
            )

        return table
