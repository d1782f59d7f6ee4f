"""Tests for HistoryEngine - snapshot-based undo/redo."""

from flowcraft.core.graph_schema import NodeType
from flowcraft.core.history import HistoryEngine


class TestRecordState:
    def test_duplicate_state_not_recorded(self, model, history):
        model.add_node(NodeType.START)
        assert history.record_state() is True
        assert history.record_state() is False
        assert len(history.past) == 1

    def test_force_records_duplicates(self, model, history):
        model.add_node(NodeType.START)
        history.record_state(force=True)
        history.record_state(force=True)
        assert len(history.past) == 2

    def test_position_jitter_is_a_duplicate(self, model, history):
        node_id = model.add_node(NodeType.START, {"x": 10, "y": 10})
        history.record_state()
        model.update_node_position(node_id, {"x": 10.3, "y": 9.8})
        assert history.record_state() is False

    def test_selection_change_is_a_duplicate(self, model, history):
        node_id = model.add_node(NodeType.START)
        history.record_state()
        model.set_selected_node(node_id)
        assert history.record_state() is False

    def test_oldest_entry_evicted(self, model, history):
        for _ in range(55):
            model.add_node(NodeType.END)
            history.record_state(force=True)
        assert len(history.past) == 50
        # Entry 0 held one node; after evicting five, the oldest holds six
        assert len(history.past[0].nodes) == 6

    def test_custom_limit(self, model, fake_timers):
        history = HistoryEngine(model, fake_timers, max_history=3)
        for _ in range(5):
            history.record_state(force=True)
        assert len(history.past) == 3

    def test_recording_clears_future(self, model, history):
        history.record_state()
        model.add_node(NodeType.START)
        history.record_state()
        history.undo()
        assert history.can_redo

        model.add_node(NodeType.END)
        history.record_state()
        assert not history.can_redo

    def test_recorded_snapshot_is_independent(self, model, history):
        node_id = model.add_node(NodeType.TRANSFORM)
        history.record_state()
        model.update_node(node_id, {"label": "Changed"})
        assert history.past[0].nodes[0].label == "Transform"


class TestUndoRedo:
    def test_undo_and_redo_restore_states(self, model, history):
        history.record_state()  # empty
        model.add_node(NodeType.START)
        history.record_state()  # one node
        model.add_node(NodeType.END)  # current, not recorded

        assert history.undo() is True
        assert len(model.nodes) == 1
        assert history.undo() is True
        assert model.nodes == []

        assert history.redo() is True
        assert len(model.nodes) == 1
        assert history.redo() is True
        assert len(model.nodes) == 2

    def test_undo_then_redo_is_identity(self, model, history, simple_graph):
        nodes, edges = simple_graph
        history.record_state()
        model.import_workflow({"nodes": nodes, "edges": edges})
        before = model.snapshot()

        history.undo()
        history.redo()

        assert model.snapshot() == before

    def test_empty_stacks_are_noops(self, history):
        assert history.undo() is False
        assert history.redo() is False
        assert history.is_applying_history is False

    def test_stack_sizes(self, model, history):
        for _ in range(3):
            model.add_node(NodeType.END)
            history.record_state()
        history.undo()
        assert (len(history.past), len(history.future)) == (2, 1)
        history.redo()
        assert (len(history.past), len(history.future)) == (3, 0)

    def test_selection_restored(self, model, history):
        node_id = model.add_node(NodeType.START)
        model.set_selected_node(node_id)
        history.record_state()
        model.set_selected_node(None)
        history.undo()
        assert model.selected_node_id == node_id

    def test_clear_history(self, model, history):
        history.record_state()
        model.add_node(NodeType.START)
        history.record_state()
        history.undo()
        history.clear_history()
        assert not history.can_undo
        assert not history.can_redo


class TestApplyingFlag:
    """The flag marks model writes that come from undo/redo."""

    def test_flag_cleared_after_delay(self, model, history, fake_timers):
        history.record_state()
        history.undo()
        assert history.is_applying_history is True

        fake_timers.advance(0.05)
        assert history.is_applying_history is True
        fake_timers.advance(0.05)
        assert history.is_applying_history is False

    def test_flag_set_during_model_write(self, model, history):
        seen = []
        history.record_state()
        model.subscribe(lambda _m, _c: seen.append(history.is_applying_history))
        history.undo()
        assert seen == [True]

    def test_flag_clears_one_delay_after_last_call(self, model, history, fake_timers):
        history.record_state()
        model.add_node(NodeType.START)
        history.record_state()

        history.undo()
        fake_timers.advance(0.08)
        history.redo()
        fake_timers.advance(0.08)
        assert history.is_applying_history is True
        fake_timers.advance(0.05)
        assert history.is_applying_history is False
        assert len(fake_timers.pending) == 0
