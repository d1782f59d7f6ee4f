"""One workflow editor: model, history, recorder and engine wired together."""

from __future__ import annotations

import logging

from flowcraft.core.config import FlowcraftConfig
from flowcraft.core.graph_engine import WorkflowEngine
from flowcraft.core.graph_schema import ExecutionLog
from flowcraft.core.graph_state import WorkflowGraphModel
from flowcraft.core.history import HistoryEngine
from flowcraft.core.recording import RecordingScheduler
from flowcraft.core.storage import Autosaver, WorkflowStorage
from flowcraft.core.timers import ThreadingTimerScheduler, TimerScheduler

logger = logging.getLogger(__name__)


class WorkflowEditor:
    """
    Independent editor instance.

    Every editor owns its own model, history stacks, re-entrancy flag and
    timers, so several editors (documents, tests) never interfere.
    """

    def __init__(
        self,
        config: FlowcraftConfig | None = None,
        timers: TimerScheduler | None = None,
        autosave: bool = False,
    ):
        self.config = config or FlowcraftConfig()
        self.model = WorkflowGraphModel()
        self.timers = timers or ThreadingTimerScheduler(self.model.lock)
        self.history = HistoryEngine(
            self.model,
            self.timers,
            max_history=self.config.history.max_states,
            apply_delay=self.config.history.apply_delay,
        )
        self.recorder = RecordingScheduler(
            self.model, self.history, self.timers, debounce=self.config.history.record_debounce
        )
        self.engine = WorkflowEngine()
        self.storage = WorkflowStorage(
            self.config.storage.path, self.timers, self.config.storage.autosave_delay
        )
        self.autosaver = Autosaver(self.model, self.storage) if autosave else None

    def execute(self) -> list[ExecutionLog]:
        """Run the current graph, keeping the executing flag set for the run."""
        self.model.set_executing(True)
        try:
            return self.engine.execute(self.model.nodes, self.model.edges)
        finally:
            self.model.set_executing(False)

    def load(self) -> bool:
        """Replace the graph with the stored workflow and reset history."""
        workflow = self.storage.load_workflow()
        if workflow is None:
            return False
        self.recorder.mark_action_start()
        self.model.import_workflow(workflow)
        self.history.clear_history()
        # Records the loaded graph as the first history entry
        self.recorder.mark_action_end()
        logger.info("Loaded workflow with %d node(s)", len(self.model.nodes))
        return True

    def save(self) -> bool:
        return self.storage.save_workflow(self.model.export_workflow())

    def close(self) -> None:
        self.recorder.dispose()
        if self.autosaver is not None:
            self.autosaver.dispose()
        self.storage.cancel_autosave()
