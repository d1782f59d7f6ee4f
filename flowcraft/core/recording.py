"""Debounced history recording driven by model changes.

The scheduler watches three signals of a ``WorkflowGraphModel``: node count,
edge count, and a fingerprint of every node's payload. A change to any of
them (re)starts a single debounce timer; when the model has been quiet for
the debounce delay, one history entry is recorded.

Position-only edits do not change the signals. Gestures such as dragging are
bracketed with ``mark_action_start()``/``mark_action_end()`` instead, which
suppress scheduling for the duration and record exactly once at the end.
"""

from __future__ import annotations

import json
import logging

from flowcraft.core.graph_state import ChangeKind, WorkflowGraphModel
from flowcraft.core.history import HistoryEngine
from flowcraft.core.timers import SingleShotTimer, TimerScheduler

logger = logging.getLogger(__name__)

RECORD_DEBOUNCE = 0.5  # seconds

Signals = tuple[int, int, str]


def read_signals(model: WorkflowGraphModel) -> Signals:
    """Node count, edge count and payload fingerprint of ``model``."""
    fingerprint = "|".join(
        json.dumps(node.data.model_dump(mode="json", by_alias=True), separators=(",", ":"))
        for node in model.nodes
    )
    return len(model.nodes), len(model.edges), fingerprint


class RecordingScheduler:
    """Turns bursts of model edits into single history entries."""

    def __init__(
        self,
        model: WorkflowGraphModel,
        history: HistoryEngine,
        timers: TimerScheduler | None = None,
        debounce: float = RECORD_DEBOUNCE,
    ):
        self.model = model
        self.history = history
        self.timers = timers or history.timers
        self.action_in_progress = False
        self._timer = SingleShotTimer(self.timers, debounce, self._record)
        self._signals = read_signals(model)
        self._unsubscribe = model.subscribe(self._on_change)

    @property
    def pending(self) -> bool:
        """Whether a debounced recording is waiting to fire."""
        return self._timer.pending

    def _on_change(self, model: WorkflowGraphModel, change: ChangeKind) -> None:
        signals = read_signals(model)
        if signals == self._signals:
            return
        self._signals = signals

        if self.history.is_applying_history:
            # The change is an undo/redo write; an edit still waiting to be
            # recorded is already captured on the history stacks.
            self._timer.cancel()
            return

        self.schedule_recording()

    def schedule_recording(self) -> None:
        """Restart the debounce timer unless an action is in progress."""
        with self.model.lock:
            if self.action_in_progress:
                return
            self._timer.start()

    def mark_action_start(self) -> None:
        """Suppress recording until ``mark_action_end()``.

        A debounced edit still pending is folded into the action's single
        entry, recorded by ``mark_action_end()``.
        """
        with self.model.lock:
            self.action_in_progress = True

    def mark_action_end(self) -> None:
        """End the action and record its result immediately."""
        with self.model.lock:
            self.action_in_progress = False
            self._timer.cancel()
            self.history.record_state()

    def dispose(self) -> None:
        """Stop observing the model and drop any pending recording."""
        with self.model.lock:
            self._unsubscribe()
            self._timer.cancel()

    def _record(self) -> None:
        with self.model.lock:
            if self.action_in_progress:
                return
            self.history.record_state()
