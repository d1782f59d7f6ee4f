"""Workflow persistence to a JSON file, with debounced autosave."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from flowcraft.core.graph_schema import WorkflowExport
from flowcraft.core.graph_state import ChangeKind, WorkflowGraphModel
from flowcraft.core.timers import SingleShotTimer, ThreadingTimerScheduler, TimerScheduler

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY = 2.0  # seconds


class WorkflowStorage:
    """Save and load one workflow file.

    I/O failures are logged and reported through the return value; callers
    decide whether a failed save matters.
    """

    def __init__(
        self,
        path: Path,
        timers: TimerScheduler | None = None,
        autosave_delay: float = AUTOSAVE_DELAY,
    ):
        self.path = Path(path)
        self._pending: WorkflowExport | None = None
        self._autosave = SingleShotTimer(
            timers or ThreadingTimerScheduler(), autosave_delay, self._flush_autosave
        )

    def save_workflow(self, workflow: WorkflowExport) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(workflow.model_dump_json(by_alias=True, indent=2))
        except OSError as e:
            logger.error("Failed to save workflow to %s: %s", self.path, e)
            return False
        logger.info("Saved workflow to %s", self.path)
        return True

    def load_workflow(self) -> WorkflowExport | None:
        if not self.path.exists():
            return None
        try:
            return WorkflowExport.model_validate_json(self.path.read_text())
        except (OSError, ValidationError) as e:
            logger.error("Failed to load workflow from %s: %s", self.path, e)
            return None

    def clear_storage(self) -> bool:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to clear %s: %s", self.path, e)
            return False
        return True

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    def auto_save(self, workflow: WorkflowExport) -> None:
        """Save ``workflow`` once no newer autosave arrives within the delay."""
        self._pending = workflow
        self._autosave.start()

    def cancel_autosave(self) -> None:
        self._autosave.cancel()
        self._pending = None

    def _flush_autosave(self) -> None:
        workflow, self._pending = self._pending, None
        if workflow is not None:
            self.save_workflow(workflow)


class Autosaver:
    """Autosaves a model whenever its nodes or edges change."""

    WATCHED = {ChangeKind.NODES, ChangeKind.EDGES, ChangeKind.STATE}

    def __init__(self, model: WorkflowGraphModel, storage: WorkflowStorage):
        self.model = model
        self.storage = storage
        self._unsubscribe = model.subscribe(self._on_change)

    def _on_change(self, model: WorkflowGraphModel, change: ChangeKind) -> None:
        if change in self.WATCHED:
            self.storage.auto_save(model.export_workflow())

    def dispose(self) -> None:
        self._unsubscribe()
