"""
Editor Engine: the host-owned entry point to the consistency core.

Owns one ``ConfigService`` and one ``HistoryService``. The hosting
application constructs it, calls ``init()`` once its storage media are
ready, and ``teardown()`` when the editing session ends. Tests build
as many isolated engines as they like.
"""

from __future__ import annotations

import copy
from logging import getLogger
from typing import Any, Mapping, Optional, Union

from fsm_editor.config.config_service import ConfigService
from fsm_editor.history.history_service import HistoryService
from fsm_editor.storage.kv_store import KeyValueStorage, MemoryStorage
from fsm_editor.workflow.reconciler import reconcile
from fsm_editor.workflow.workflow_model import EditorWorkflow

logger = getLogger(__name__)


class EditorEngine:
    """Reconcile-then-record pipeline plus undo/redo for the editor."""

    def __init__(
        self,
        session_storage: Optional[KeyValueStorage] = None,
        durable_storage: Optional[KeyValueStorage] = None,
    ) -> None:
        # MemoryStorage defines __len__, so an empty one is falsy
        self._session_storage = MemoryStorage() if session_storage is None else session_storage
        self._durable_storage = MemoryStorage() if durable_storage is None else durable_storage
        self._config: Optional[ConfigService] = None
        self._history: Optional[HistoryService] = None

    # ── Lifecycle ──

    def init(self) -> "EditorEngine":
        if self._history is not None:
            return self
        self._config = ConfigService(self._durable_storage)
        self._history = HistoryService(self._config, self._session_storage)
        logger.info(
            f"EditorEngine initialized (max_depth="
            f"{self._config.get_history_config().max_depth})"
        )
        return self

    def teardown(self) -> None:
        if self._history is None:
            return
        self._history = None
        self._config = None
        logger.info("EditorEngine torn down")

    @property
    def initialized(self) -> bool:
        return self._history is not None

    def __enter__(self) -> "EditorEngine":
        return self.init()

    def __exit__(self, *exc) -> None:
        self.teardown()

    @property
    def config(self) -> ConfigService:
        if self._config is None:
            raise RuntimeError("EditorEngine.init() has not been called")
        return self._config

    @property
    def history(self) -> HistoryService:
        if self._history is None:
            raise RuntimeError("EditorEngine.init() has not been called")
        return self._history

    # ── Editing ──

    def commit(
        self,
        workflow_id: str,
        workflow: Union[EditorWorkflow, Mapping[str, Any]],
        description: str,
    ) -> EditorWorkflow:
        """Reconcile ``workflow``, record it, and return the reconciled copy.

        A wire document (camelCase mapping) is validated first, so a
        malformed one raises ``ValidationError`` before the timeline is
        touched. The caller should adopt the returned workflow as its
        working copy.
        """
        history = self.history
        if not isinstance(workflow, EditorWorkflow):
            workflow = EditorWorkflow.model_validate(copy.deepcopy(dict(workflow)))
        reconciled = reconcile(workflow)
        history.add_entry(workflow_id, reconciled, description)
        return reconciled.clone()

    def undo(self, workflow_id: str) -> Optional[EditorWorkflow]:
        return self.history.undo(workflow_id)

    def redo(self, workflow_id: str) -> Optional[EditorWorkflow]:
        return self.history.redo(workflow_id)

    def can_undo(self, workflow_id: str) -> bool:
        return self.history.can_undo(workflow_id)

    def can_redo(self, workflow_id: str) -> bool:
        return self.history.can_redo(workflow_id)

    def undo_count(self, workflow_id: str) -> int:
        return self.history.get_undo_count(workflow_id)

    def redo_count(self, workflow_id: str) -> int:
        return self.history.get_redo_count(workflow_id)
