"""
Undo/redo timelines: truncation, bounds, isolation, persistence.
"""

import json

import pytest
from hypothesis import given, settings, strategies as st

from fsm_editor.config import ConfigService
from fsm_editor.history import HEAD, HISTORY_STORAGE_KEY, HistoryService
from fsm_editor.storage import MemoryStorage, StorageError

from .conftest import make_workflow


def _name(workflow):
    return workflow.configuration.name


def _fill(history, *tags, workflow_id="wf"):
    for tag in tags:
        history.add_entry(workflow_id, make_workflow(tag, workflow_id), tag)


class FailingStorage(MemoryStorage):
    def set_item(self, key, value):
        raise StorageError("quota exceeded")


# =============================================================================
# CURSOR RULES
# =============================================================================

class TestUndoRedo:

    def test_empty_timeline(self, history):
        assert history.undo("wf") is None
        assert history.redo("wf") is None
        assert not history.can_undo("wf")
        assert not history.can_redo("wf")
        assert history.get_undo_count("wf") == 0
        assert history.get_redo_count("wf") == 0

    def test_single_entry_cannot_undo(self, history):
        _fill(history, "A")
        assert not history.can_undo("wf")
        assert history.get_undo_count("wf") == 0
        assert history.undo("wf") is None

    def test_undo_from_head_lands_before_latest(self, history):
        _fill(history, "A", "B", "C")
        assert history.get_undo_count("wf") == 2
        assert _name(history.undo("wf")) == "B"
        assert history.get_current_index("wf") == 1
        assert _name(history.undo("wf")) == "A"
        assert history.undo("wf") is None
        assert history.get_current_index("wf") == 0

    def test_redo_walks_forward_to_last_entry(self, history):
        _fill(history, "A", "B", "C")
        history.undo("wf")
        history.undo("wf")
        assert history.get_redo_count("wf") == 2
        assert _name(history.redo("wf")) == "B"
        assert _name(history.redo("wf")) == "C"
        assert history.redo("wf") is None
        assert not history.can_redo("wf")
        assert history.get_undo_count("wf") == 2

    def test_redo_at_head_is_noop(self, history):
        _fill(history, "A", "B")
        assert history.redo("wf") is None
        assert history.get_current_index("wf") == HEAD

    def test_new_entry_discards_redo_branch(self, history):
        _fill(history, "A", "B", "C")
        history.undo("wf")
        history.undo("wf")

        _fill(history, "D")

        assert [e.description for e in history.get_entries("wf")] == ["A", "D"]
        assert history.get_current_index("wf") == HEAD
        assert history.redo("wf") is None
        assert _name(history.undo("wf")) == "A"

    def test_timelines_are_independent(self, history):
        _fill(history, "A", "B", workflow_id="one")
        _fill(history, "X", workflow_id="two")
        history.undo("one")
        assert history.get_undo_count("one") == 0
        assert history.get_redo_count("one") == 1
        assert history.get_undo_count("two") == 0
        assert history.get_current_index("two") == HEAD


# =============================================================================
# DEPTH BOUND
# =============================================================================

class TestDepthBound:

    def test_scenario_max_depth_three(self, history, config_service):
        config_service.update({"history": {"maxDepth": 3}})
        for tag in "abcd":
            history.add_entry("wf", make_workflow(f"E-{tag}"), tag)

        assert [e.description for e in history.get_entries("wf")] == ["b", "c", "d"]
        assert history.get_undo_count("wf") == 2
        assert _name(history.undo("wf")) == "E-c"
        assert _name(history.undo("wf")) == "E-b"
        assert history.undo("wf") is None

    def test_lowered_bound_applies_on_next_add(self, history, config_service):
        _fill(history, "A", "B", "C", "D")
        config_service.update({"history": {"max_depth": 2}})
        assert len(history.get_entries("wf")) == 4

        _fill(history, "E")
        assert [e.description for e in history.get_entries("wf")] == ["D", "E"]

    @settings(max_examples=25, deadline=None)
    @given(max_depth=st.integers(1, 8), extra=st.integers(1, 5))
    def test_bound_holds(self, max_depth, extra):
        config = ConfigService(MemoryStorage())
        config.update({"history": {"maxDepth": max_depth}})
        history = HistoryService(config, MemoryStorage())

        for i in range(max_depth + extra):
            history.add_entry("wf", make_workflow(str(i)), str(i))

        entries = history.get_entries("wf")
        assert len(entries) == max_depth
        assert entries[-1].description == str(max_depth + extra - 1)
        assert history.get_undo_count("wf") == max_depth - 1


# =============================================================================
# SNAPSHOT ISOLATION
# =============================================================================

class TestIsolation:

    def test_caller_mutation_does_not_leak_into_snapshot(self, history):
        live = make_workflow("A")
        history.add_entry("wf", live, "A")
        live.configuration.name = "mutated"
        live.layout.states.clear()
        _fill(history, "B")

        restored = history.undo("wf")
        assert _name(restored) == "A"
        assert len(restored.layout.states) == 2

    def test_returned_workflow_is_a_fresh_copy(self, history):
        _fill(history, "A", "B", "C")
        first = history.undo("wf")
        first.configuration.states.clear()
        history.redo("wf")

        again = history.undo("wf")
        assert set(again.configuration.states) == {"a", "b"}
        assert again is not first

    def test_plain_dict_snapshot(self, history):
        doc = make_workflow("A").to_document()
        history.add_entry("wf", doc, "A")
        doc["configuration"]["name"] = "mutated"
        assert history.get_entries("wf")[0].workflow.configuration.name == "A"

    def test_timestamps_come_from_clock(self, history):
        _fill(history, "A", "B")
        stamps = [e.timestamp for e in history.get_entries("wf")]
        assert stamps == [1_700_000_000_000, 1_700_000_001_000]


# =============================================================================
# CLEARING AND DIAGNOSTICS
# =============================================================================

class TestClearing:

    def test_clear_one_workflow(self, history):
        _fill(history, "A", "B", workflow_id="one")
        _fill(history, "X", workflow_id="two")
        history.clear_workflow_history("one")
        assert history.workflow_ids() == ["two"]
        assert not history.can_undo("one")

    def test_clear_all(self, history, session_storage):
        _fill(history, "A", workflow_id="one")
        _fill(history, "X", workflow_id="two")
        history.clear_all_history()
        assert history.workflow_ids() == []
        assert json.loads(session_storage.get_item(HISTORY_STORAGE_KEY)) == {}

    def test_debug_info(self, history):
        _fill(history, "A", "B", "C")
        history.undo("wf")
        assert history.get_debug_info() == {
            "wf": {"entries": 3, "currentIndex": 1, "undoCount": 1, "redoCount": 1},
        }


# =============================================================================
# PERSISTENCE
# =============================================================================

class TestPersistence:

    def test_record_shape(self, history, session_storage):
        _fill(history, "A", "B")
        history.undo("wf")

        record = json.loads(session_storage.get_item(HISTORY_STORAGE_KEY))
        assert record["wf"]["currentIndex"] == 0
        entry = record["wf"]["entries"][0]
        assert set(entry) == {"timestamp", "workflow", "description"}
        assert entry["workflow"]["configuration"]["initialState"] == "a"

    def test_reload_restores_cursor(self, history, config_service, session_storage):
        _fill(history, "A", "B", "C")
        history.undo("wf")

        restored = HistoryService(config_service, session_storage)
        assert restored.get_current_index("wf") == 1
        assert _name(restored.redo("wf")) == "C"

    def test_reload_from_session(self, history, session_storage):
        _fill(history, "A", "B")
        session_storage.clear()
        history.reload_from_session()
        assert history.workflow_ids() == []

    def test_corrupt_record_starts_empty(self, config_service):
        storage = MemoryStorage()
        storage.set_item(HISTORY_STORAGE_KEY, "{not json")
        assert HistoryService(config_service, storage).workflow_ids() == []

    def test_malformed_timeline_is_skipped(self, config_service):
        good = {"entries": [], "currentIndex": -1}
        bad = {"entries": [], "currentIndex": 4}
        storage = MemoryStorage()
        storage.set_item(HISTORY_STORAGE_KEY, json.dumps({"good": good, "bad": bad, "worse": 7}))

        assert HistoryService(config_service, storage).workflow_ids() == ["good"]

    def test_write_failure_keeps_memory_authoritative(self, config_service):
        history = HistoryService(config_service, FailingStorage())
        _fill(history, "A", "B")
        assert _name(history.undo("wf")) == "A"
        assert _name(history.redo("wf")) == "B"

    def test_quota_exceeded_is_swallowed(self, config_service):
        history = HistoryService(config_service, MemoryStorage(quota_bytes=64))
        _fill(history, "A", "B")
        assert history.get_undo_count("wf") == 1


@pytest.mark.parametrize("max_depth", [1, 2])
def test_tiny_bounds_never_allow_undo_past_oldest(history, config_service, max_depth):
    config_service.update({"history": {"maxDepth": max_depth}})
    _fill(history, "A", "B", "C")
    undone = [history.undo("wf") for _ in range(3)]
    assert sum(w is not None for w in undone) == max_depth - 1
