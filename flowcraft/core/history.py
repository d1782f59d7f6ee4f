"""Snapshot-based undo/redo for a workflow editor.

``HistoryEngine`` keeps two stacks of ``WorkflowState`` snapshots:
- ``past``: oldest first, bounded (the oldest entry is evicted on overflow)
- ``future``: states undone since the last recorded edit

While an undo or redo writes a snapshot back into the model,
``is_applying_history`` is set; it stays set for a short delay so that change
observers reacting to that write (the recording scheduler) can tell it apart
from a user edit. The flag is a plain boolean, not a counter: overlapping
undo/redo calls share it, and it clears one delay after the last of them.
"""

from __future__ import annotations

import logging

from flowcraft.core.graph_schema import WorkflowState
from flowcraft.core.graph_state import WorkflowGraphModel
from flowcraft.core.state_compare import serialize_state
from flowcraft.core.timers import SingleShotTimer, ThreadingTimerScheduler, TimerScheduler

logger = logging.getLogger(__name__)

MAX_HISTORY = 50
APPLY_HISTORY_DELAY = 0.1  # seconds


class HistoryEngine:
    """Undo/redo stacks bound to one ``WorkflowGraphModel``."""

    def __init__(
        self,
        model: WorkflowGraphModel,
        timers: TimerScheduler | None = None,
        max_history: int = MAX_HISTORY,
        apply_delay: float = APPLY_HISTORY_DELAY,
    ):
        self.model = model
        self.timers = timers or ThreadingTimerScheduler(model.lock)
        self.max_history = max_history
        self.past: list[WorkflowState] = []
        self.future: list[WorkflowState] = []
        self.is_applying_history = False
        self._flag_timer = SingleShotTimer(self.timers, apply_delay, self._clear_applying_flag)

    @property
    def can_undo(self) -> bool:
        return len(self.past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.future) > 0

    def record_state(self, force: bool = False) -> bool:
        """Push a snapshot of the model onto ``past``.

        Unless ``force`` is set, a snapshot identical to the newest entry is
        dropped. Recording clears ``future``.

        Returns:
            True if a snapshot was recorded
        """
        with self.model.lock:
            current = self.model.snapshot()

            if not force and self.past:
                if serialize_state(current) == serialize_state(self.past[-1]):
                    logger.debug("History: state unchanged, not recorded")
                    return False

            self.past.append(current)
            self.future = []

            if len(self.past) > self.max_history:
                del self.past[0]
                logger.debug("History: evicted oldest state (limit %d)", self.max_history)

            logger.debug("History: recorded state (%d past)", len(self.past))
            return True

    def undo(self) -> bool:
        """Restore the newest ``past`` state. Returns False if there is none."""
        with self.model.lock:
            if not self.can_undo:
                logger.debug("History: nothing to undo")
                return False

            self._begin_applying()
            self.future.append(self.model.snapshot())
            self.model.replace_state(self.past.pop())
            logger.debug("History: undo (%d past, %d future)", len(self.past), len(self.future))
            return True

    def redo(self) -> bool:
        """Restore the newest ``future`` state. Returns False if there is none."""
        with self.model.lock:
            if not self.can_redo:
                logger.debug("History: nothing to redo")
                return False

            self._begin_applying()
            self.past.append(self.model.snapshot())
            self.model.replace_state(self.future.pop())
            logger.debug("History: redo (%d past, %d future)", len(self.past), len(self.future))
            return True

    def clear_history(self) -> None:
        with self.model.lock:
            self.past = []
            self.future = []

    def _begin_applying(self) -> None:
        self.is_applying_history = True
        self._flag_timer.start()

    def _clear_applying_flag(self) -> None:
        self.is_applying_history = False
