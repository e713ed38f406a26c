"""
History Service: per-workflow undo/redo timelines.

Each workflow id owns a bounded sequence of snapshots plus a cursor.
The cursor is either ``HEAD`` (-1, "the latest state, nothing undone")
or an index into the sequence. Rules:

* ``add_entry`` drops everything after the cursor when it is not at
  ``HEAD`` (a new edit discards the redo branch), appends, evicts from
  the front down to ``max_depth``, and returns the cursor to ``HEAD``.
* ``undo`` from ``HEAD`` lands on ``len - 2``: the last entry *is* the
  current state, so a single-entry timeline has nothing to undo.
* ``redo`` only moves when the cursor is an index below ``len - 1``.

``max_depth`` is read from the ``ConfigService`` on every ``add_entry``
so a lowered bound trims on the next write, not immediately.

Timelines are persisted to a session-scoped ``KeyValueStorage`` under
``statemachine-ui-history``. Storage failures are logged and ignored;
the in-memory timelines stay authoritative for the session.
"""

from __future__ import annotations

import copy
import json
import time
from logging import getLogger
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import Field, ValidationError, model_validator

from fsm_editor.config.config_service import ConfigService
from fsm_editor.storage.kv_store import KeyValueStorage
from fsm_editor.workflow.workflow_model import DocumentModel, EditorWorkflow

logger = getLogger(__name__)

HISTORY_STORAGE_KEY = "statemachine-ui-history"
HEAD = -1


def _epoch_ms() -> int:
    return int(time.time() * 1000)


# ============================================================================
# Persisted models
# ============================================================================


class HistoryEntry(DocumentModel):
    """One snapshot: a deep copy of a workflow at a point in time."""

    timestamp: int
    workflow: EditorWorkflow
    description: str = ""


class WorkflowHistory(DocumentModel):
    entries: List[HistoryEntry] = Field(default_factory=list)
    current_index: int = HEAD

    @model_validator(mode="after")
    def check_cursor(self) -> "WorkflowHistory":
        if self.current_index != HEAD and not 0 <= self.current_index < len(self.entries):
            raise ValueError(
                f"currentIndex {self.current_index} out of range for "
                f"{len(self.entries)} entries"
            )
        return self

    @property
    def at_head(self) -> bool:
        return self.current_index == HEAD

    def undo_count(self) -> int:
        if self.at_head:
            return max(0, len(self.entries) - 1)
        return self.current_index

    def redo_count(self) -> int:
        if self.at_head:
            return 0
        return len(self.entries) - 1 - self.current_index


# ============================================================================
# Service
# ============================================================================


class HistoryService:
    """Bounded, branch-truncating undo/redo timelines keyed by workflow id."""

    def __init__(
        self,
        config_service: ConfigService,
        storage: KeyValueStorage,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._config = config_service
        self._storage = storage
        self._clock = clock or _epoch_ms
        self._histories: Dict[str, WorkflowHistory] = self._load()

    # ── Recording ──

    def add_entry(
        self,
        workflow_id: str,
        workflow: Union[EditorWorkflow, Mapping[str, Any]],
        description: str,
    ) -> None:
        """Record ``workflow`` as the newest state of ``workflow_id``."""
        snapshot = self._snapshot(workflow)
        history = self._histories.setdefault(workflow_id, WorkflowHistory())
        max_depth = self._config.get_history_config().max_depth

        if not history.at_head:
            discarded = len(history.entries) - history.current_index - 1
            del history.entries[history.current_index + 1:]
            if discarded:
                logger.debug(f"[{workflow_id}] discarded {discarded} redo entries")

        history.entries.append(HistoryEntry(
            timestamp=self._clock(),
            workflow=snapshot,
            description=description,
        ))

        overflow = len(history.entries) - max_depth
        if overflow > 0:
            del history.entries[:overflow]

        history.current_index = HEAD
        logger.debug(
            f"[{workflow_id}] recorded {description!r} "
            f"({len(history.entries)}/{max_depth} entries)"
        )
        self._save()

    # ── Navigation ──

    def undo(self, workflow_id: str) -> Optional[EditorWorkflow]:
        """Step back one entry; ``None`` when there is nothing to undo."""
        history = self._histories.get(workflow_id)
        if history is None or not history.entries:
            return None

        if history.at_head:
            if len(history.entries) < 2:
                return None
            history.current_index = len(history.entries) - 2
        elif history.current_index > 0:
            history.current_index -= 1
        else:
            return None

        self._save()
        return history.entries[history.current_index].workflow.clone()

    def redo(self, workflow_id: str) -> Optional[EditorWorkflow]:
        """Step forward one entry; ``None`` at ``HEAD`` or the last entry."""
        history = self._histories.get(workflow_id)
        if history is None or history.at_head:
            return None
        if history.current_index >= len(history.entries) - 1:
            return None

        history.current_index += 1
        self._save()
        return history.entries[history.current_index].workflow.clone()

    # ── Queries ──

    def can_undo(self, workflow_id: str) -> bool:
        return self.get_undo_count(workflow_id) > 0

    def can_redo(self, workflow_id: str) -> bool:
        return self.get_redo_count(workflow_id) > 0

    def get_undo_count(self, workflow_id: str) -> int:
        history = self._histories.get(workflow_id)
        return history.undo_count() if history else 0

    def get_redo_count(self, workflow_id: str) -> int:
        history = self._histories.get(workflow_id)
        return history.redo_count() if history else 0

    def get_current_index(self, workflow_id: str) -> int:
        history = self._histories.get(workflow_id)
        return history.current_index if history else HEAD

    def get_entries(self, workflow_id: str) -> List[HistoryEntry]:
        """Deep copies of the retained entries, oldest first."""
        history = self._histories.get(workflow_id)
        if history is None:
            return []
        return [entry.model_copy(deep=True) for entry in history.entries]

    def workflow_ids(self) -> List[str]:
        return list(self._histories)

    def get_debug_info(self) -> Dict[str, Dict[str, int]]:
        return {
            workflow_id: {
                "entries": len(history.entries),
                "currentIndex": history.current_index,
                "undoCount": history.undo_count(),
                "redoCount": history.redo_count(),
            }
            for workflow_id, history in self._histories.items()
        }

    # ── Clearing ──

    def clear_workflow_history(self, workflow_id: str) -> None:
        if self._histories.pop(workflow_id, None) is not None:
            logger.info(f"[{workflow_id}] history cleared")
        self._save()

    def clear_all_history(self) -> None:
        self._histories = {}
        logger.info("All workflow history cleared")
        self._save()

    def reload_from_session(self) -> None:
        """Replace the in-memory timelines with the persisted record."""
        self._histories = self._load()

    # ── Internals ──

    @staticmethod
    def _snapshot(workflow: Union[EditorWorkflow, Mapping[str, Any]]) -> EditorWorkflow:
        if isinstance(workflow, EditorWorkflow):
            return workflow.clone()
        return EditorWorkflow.model_validate(copy.deepcopy(dict(workflow)))

    def _load(self) -> Dict[str, WorkflowHistory]:
        try:
            raw = self._storage.get_item(HISTORY_STORAGE_KEY)
            data = json.loads(raw) if raw else {}
        except Exception as e:
            logger.warning(f"Failed to load history from session storage: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning("Persisted history is not an object; starting empty")
            return {}

        histories: Dict[str, WorkflowHistory] = {}
        for workflow_id, value in data.items():
            try:
                histories[workflow_id] = WorkflowHistory.model_validate(value)
            except ValidationError as e:
                logger.warning(f"Skipping malformed history for {workflow_id}: {e.error_count()} errors")
        return histories

    def _save(self) -> None:
        try:
            payload = {
                workflow_id: history.to_document()
                for workflow_id, history in self._histories.items()
            }
            self._storage.set_item(HISTORY_STORAGE_KEY, json.dumps(payload))
        except Exception as e:
            logger.warning(f"Failed to save history to session storage: {e}")
