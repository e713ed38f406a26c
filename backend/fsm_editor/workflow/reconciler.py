"""
Consistency Reconciler: keep the canvas layout in step with the
configuration.

Layout rows are keyed by derived strings rather than object references,
so deleting a state or transition anywhere in the editor leaves orphaned
rows behind. ``reconcile`` is the single place where they are swept.
It only ever removes layout rows; the configuration is never touched.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, List, NamedTuple, Set

from fsm_editor.workflow.transition_ids import validate_transition_id
from fsm_editor.workflow.workflow_model import EditorWorkflow

logger = getLogger(__name__)


class ReconcileReport(NamedTuple):
    removed_states: List[str]
    removed_transitions: List[str]

    @property
    def changed(self) -> bool:
        return bool(self.removed_states or self.removed_transitions)


def find_orphans(workflow: EditorWorkflow) -> ReconcileReport:
    """List the layout row ids ``reconcile`` would drop."""
    if not _is_reconcilable(workflow):
        return ReconcileReport([], [])

    known: Set[str] = workflow.configuration.state_ids()
    return ReconcileReport(
        removed_states=[s.id for s in workflow.layout.states if s.id not in known],
        removed_transitions=[
            t.id for t in workflow.layout.transitions
            if not validate_transition_id(t.id, known)
        ],
    )


def reconcile(workflow: Any) -> Any:
    """Return a copy of ``workflow`` without layout rows for unknown states.

    Pure and idempotent. Input that is not a complete ``EditorWorkflow``
    (e.g. still loading) is handed back unchanged.
    """
    if not _is_reconcilable(workflow):
        return workflow

    known = workflow.configuration.state_ids()
    result = workflow.clone()
    layout = result.layout

    kept_states = [s for s in layout.states if s.id in known]
    kept_transitions = [t for t in layout.transitions if validate_transition_id(t.id, known)]

    dropped = (len(layout.states) - len(kept_states)) + (
        len(layout.transitions) - len(kept_transitions)
    )
    if dropped:
        logger.debug(f"Reconciled workflow {workflow.id}: dropped {dropped} orphaned layout rows")

    layout.states[:] = kept_states
    layout.transitions[:] = kept_transitions
    return result


def _is_reconcilable(workflow: Any) -> bool:
    return isinstance(workflow, EditorWorkflow) and workflow.is_complete
