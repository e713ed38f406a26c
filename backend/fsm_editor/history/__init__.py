"""
Undo/redo timelines for workflows.
"""

from fsm_editor.history.history_service import (
    HEAD,
    HISTORY_STORAGE_KEY,
    HistoryEntry,
    HistoryService,
    WorkflowHistory,
)

__all__ = [
    "HEAD",
    "HISTORY_STORAGE_KEY",
    "HistoryEntry",
    "HistoryService",
    "WorkflowHistory",
]
