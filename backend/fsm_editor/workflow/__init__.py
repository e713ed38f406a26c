"""
Workflow documents and the operations that keep them consistent.

Architecture:
    workflow_model   : configuration, layout and combined editor workflow
    transition_ids   : transition id generation, parsing and validation
    reconciler       : prunes layout rows the configuration no longer backs
    workflow_edits   : pure structural edits (states, transitions, layout)
    templates        : sample workflows
    auto_layout      : hierarchical state placement (networkx)
"""

from fsm_editor.workflow.workflow_model import (
    CanvasLayout,
    EditorWorkflow,
    Position,
    ProcessorDefinition,
    StateDefinition,
    StateLayout,
    TransitionDefinition,
    TransitionLayout,
    WorkflowConfiguration,
)
from fsm_editor.workflow.transition_ids import (
    TransitionEndpoints,
    OrdinalTransitionRef,
    find_transition_id,
    generate_ordinal_id,
    generate_transition_id,
    get_transition_definition,
    migrate_layout_transition_id,
    parse_ordinal_id,
    parse_transition_id,
    validate_transition_exists,
    validate_transition_id,
)
from fsm_editor.workflow.reconciler import ReconcileReport, find_orphans, reconcile
from fsm_editor.workflow.workflow_edits import (
    WorkflowEditError,
    add_state,
    connect,
    delete_state,
    disconnect,
    move_state,
    move_transition_label,
    update_state,
    update_transition,
)
from fsm_editor.workflow.templates import get_template, list_template_names
from fsm_editor.workflow.auto_layout import (
    LayoutOptions,
    apply_layout,
    auto_layout_workflow,
    calculate_auto_layout,
    can_auto_layout,
)

__all__ = [
    "CanvasLayout",
    "EditorWorkflow",
    "Position",
    "ProcessorDefinition",
    "StateDefinition",
    "StateLayout",
    "TransitionDefinition",
    "TransitionLayout",
    "WorkflowConfiguration",
    "TransitionEndpoints",
    "OrdinalTransitionRef",
    "find_transition_id",
    "generate_ordinal_id",
    "generate_transition_id",
    "get_transition_definition",
    "migrate_layout_transition_id",
    "parse_ordinal_id",
    "parse_transition_id",
    "validate_transition_exists",
    "validate_transition_id",
    "ReconcileReport",
    "find_orphans",
    "reconcile",
    "WorkflowEditError",
    "add_state",
    "connect",
    "delete_state",
    "disconnect",
    "move_state",
    "move_transition_label",
    "update_state",
    "update_transition",
    "get_template",
    "list_template_names",
    "LayoutOptions",
    "apply_layout",
    "auto_layout_workflow",
    "calculate_auto_layout",
    "can_auto_layout",
]
