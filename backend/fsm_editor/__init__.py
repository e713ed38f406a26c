"""
State-machine workflow editor core.

Keeps a workflow's functional configuration and its canvas layout
consistent, and maintains bounded undo/redo timelines per workflow.

Architecture:
    workflow/   : documents, transition ids, reconciler, edit operations
    history/    : per-workflow undo/redo timelines
    config/     : persisted application configuration
    storage/    : session-scoped and durable key-value media
    engine      : host-owned lifecycle wrapper tying them together
"""

from fsm_editor.engine import EditorEngine

__all__ = ["EditorEngine"]
