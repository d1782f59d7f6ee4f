"""Tests for workflow file storage and autosave."""

import json

import pytest

from flowcraft.core.graph_schema import NodeType, WorkflowExport
from flowcraft.core.storage import Autosaver, WorkflowStorage


@pytest.fixture
def storage(tmp_path, fake_timers) -> WorkflowStorage:
    return WorkflowStorage(tmp_path / "data" / "workflow.json", fake_timers)


class TestSaveLoad:
    def test_save_then_load(self, storage, simple_graph):
        nodes, edges = simple_graph
        assert storage.save_workflow(WorkflowExport(nodes=nodes, edges=edges)) is True

        loaded = storage.load_workflow()
        assert [n.id for n in loaded.nodes] == ["start-1", "end-1"]
        assert loaded.edges == edges

    def test_file_uses_camel_case(self, storage, gb):
        end = gb.end()
        end.data.received_payload = {"a": 1}
        storage.save_workflow(WorkflowExport(nodes=[end]))

        doc = json.loads(storage.path.read_text())
        assert set(doc) == {"version", "timestamp", "nodes", "edges"}
        assert doc["nodes"][0]["data"]["receivedPayload"] == {"a": 1}

    def test_load_missing_file(self, storage):
        assert storage.load_workflow() is None

    def test_load_corrupt_file(self, storage):
        storage.path.parent.mkdir(parents=True)
        storage.path.write_text("{not json")
        assert storage.load_workflow() is None

    def test_save_failure_returns_false(self, tmp_path, fake_timers):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        storage = WorkflowStorage(blocker / "workflow.json", fake_timers)
        assert storage.save_workflow(WorkflowExport()) is False

    def test_clear_storage(self, storage):
        storage.save_workflow(WorkflowExport())
        assert storage.clear_storage() is True
        assert not storage.path.exists()
        assert storage.clear_storage() is True


class TestAutosave:
    def test_latest_workflow_saved_after_delay(self, storage, fake_timers, gb):
        storage.auto_save(WorkflowExport(nodes=[gb.start()]))
        fake_timers.advance(1.0)
        storage.auto_save(WorkflowExport(nodes=[gb.start(), gb.end()]))
        fake_timers.advance(1.5)
        assert not storage.path.exists()

        fake_timers.advance(0.5)
        assert not storage.autosave_pending
        assert len(storage.load_workflow().nodes) == 2

    def test_cancel_autosave(self, storage, fake_timers):
        storage.auto_save(WorkflowExport())
        storage.cancel_autosave()
        fake_timers.advance(5.0)
        assert not storage.path.exists()

    def test_autosaver_follows_graph_edits(self, model, storage, fake_timers):
        autosaver = Autosaver(model, storage)
        model.add_node(NodeType.START)
        assert storage.autosave_pending

        fake_timers.advance(2.0)
        assert len(storage.load_workflow().nodes) == 1
        autosaver.dispose()

    def test_autosaver_ignores_selection(self, model, storage):
        node_id = model.add_node(NodeType.START)
        autosaver = Autosaver(model, storage)
        model.set_selected_node(node_id)
        model.set_executing(True)
        assert not storage.autosave_pending
        autosaver.dispose()
