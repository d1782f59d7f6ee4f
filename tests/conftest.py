# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the flowcraft test suite.

This module provides:
- Node/edge builders and sample workflow graphs
- A manual clock (``FakeTimers``) standing in for real timers, so debounce
  and flag-clear delays are driven explicitly with ``advance()``
- A wired model/history/recorder trio on top of the manual clock

Usage:
    Import fixtures implicitly via pytest's fixture discovery.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from flowcraft.core.graph_schema import Edge, Node
from flowcraft.core.graph_state import WorkflowGraphModel
from flowcraft.core.history import HistoryEngine
from flowcraft.core.recording import RecordingScheduler


# =============================================================================
# Timers
# =============================================================================


class FakeTimerHandle:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Manual clock implementing the ``TimerScheduler`` protocol."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in due order."""
        target = self.now + seconds
        while True:
            due = sorted(
                (h for h in self.pending if h.due <= target), key=lambda h: h.due
            )
            if not due:
                break
            handle = due[0]
            self.handles.remove(handle)
            self.now = handle.due
            handle.callback()
        self.now = target


@pytest.fixture
def fake_timers() -> FakeTimers:
    return FakeTimers()


# =============================================================================
# Graph builders
# =============================================================================


class GraphBuilder:
    """Shorthand constructors for nodes and edges."""

    @staticmethod
    def start(node_id: str = "start-1", payload: str = '{"message": "hello"}', **kw: Any) -> Node:
        return Node.model_validate(
            {
                "id": node_id,
                "type": "start",
                "position": kw.get("position", {"x": 0, "y": 0}),
                "data": {"label": kw.get("label", "Start"), "payload": payload},
            }
        )

    @staticmethod
    def transform(
        node_id: str = "transform-1",
        operation: str = "uppercase",
        value: Any = None,
        **kw: Any,
    ) -> Node:
        data: dict[str, Any] = {"label": kw.get("label", "Transform"), "operation": operation}
        if value is not None:
            data["value"] = value
        return Node.model_validate(
            {
                "id": node_id,
                "type": "transform",
                "position": kw.get("position", {"x": 100, "y": 0}),
                "data": data,
            }
        )

    @staticmethod
    def end(node_id: str = "end-1", **kw: Any) -> Node:
        return Node.model_validate(
            {
                "id": node_id,
                "type": "end",
                "position": kw.get("position", {"x": 200, "y": 0}),
                "data": {"label": kw.get("label", "End")},
            }
        )

    @staticmethod
    def chain(*nodes: Node) -> list[Edge]:
        """Edges linking ``nodes`` one after another."""
        return [Edge.between(a.id, b.id) for a, b in zip(nodes, nodes[1:])]


@pytest.fixture
def gb() -> type[GraphBuilder]:
    return GraphBuilder


@pytest.fixture
def simple_graph(gb) -> tuple[list[Node], list[Edge]]:
    """start -> end with payload {"message": "hello"}."""
    nodes = [gb.start(), gb.end()]
    return nodes, gb.chain(*nodes)


# =============================================================================
# Editor components
# =============================================================================


@pytest.fixture
def model() -> WorkflowGraphModel:
    return WorkflowGraphModel()


@pytest.fixture
def history(model, fake_timers) -> HistoryEngine:
    return HistoryEngine(model, fake_timers)


@pytest.fixture
def recorder(model, history, fake_timers) -> RecordingScheduler:
    scheduler = RecordingScheduler(model, history, fake_timers)
    yield scheduler
    scheduler.dispose()
