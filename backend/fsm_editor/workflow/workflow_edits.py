"""
Structural edit operations on an ``EditorWorkflow``.

Each function returns a new workflow and leaves its argument untouched.
None of them reconcile the layout; the host runs ``reconcile`` on the
result before recording it in the timeline.
"""

from __future__ import annotations

from logging import getLogger
from typing import List, Optional, Set, Tuple

from fsm_editor.workflow.transition_ids import (
    generate_ordinal_id,
    parse_ordinal_id,
    parse_transition_id,
)
from fsm_editor.workflow.workflow_model import (
    CanvasLayout,
    EditorWorkflow,
    Position,
    StateDefinition,
    StateLayout,
    TransitionDefinition,
    TransitionLayout,
    WorkflowConfiguration,
)

logger = getLogger(__name__)


class WorkflowEditError(ValueError):
    """An edit referenced a state or transition that does not exist."""


def _editable(workflow: EditorWorkflow) -> EditorWorkflow:
    if workflow.configuration is None:
        raise WorkflowEditError(f"Workflow {workflow.id} has no configuration loaded")
    result = workflow.clone()
    if result.layout is None:
        result.layout = CanvasLayout(workflow_id=workflow.id)
    return result


def _require_state(config: WorkflowConfiguration, state_id: str) -> StateDefinition:
    state = config.states.get(state_id)
    if state is None:
        raise WorkflowEditError(f"Unknown state: {state_id}")
    return state


def _reindex_transition_rows(
    layout: CanvasLayout,
    state_id: str,
    kept: List[int],
    remaining_targets: Set[str],
) -> None:
    """Rewrite ``state_id``'s transition rows after some transitions went away.

    ``kept`` holds the old indices of the surviving transitions in their
    new order. Ordinal rows are renumbered to match; rows of removed
    transitions are dropped. A target-based row survives only while some
    remaining transition still goes to its target.
    """
    new_index = {old: new for new, old in enumerate(kept)}
    rows = []
    for row in layout.transitions:
        ref = parse_ordinal_id(row.id)
        if ref is not None and ref.source_state_id == state_id:
            if ref.transition_index not in new_index:
                continue
            row.id = generate_ordinal_id(state_id, new_index[ref.transition_index])
        else:
            endpoints = parse_transition_id(row.id)
            if (
                endpoints is not None
                and endpoints.source_state_id == state_id
                and endpoints.target_state_id not in remaining_targets
            ):
                continue
        rows.append(row)
    layout.transitions[:] = rows


# ── States ──


def add_state(
    workflow: EditorWorkflow,
    state_id: str,
    position: Optional[Tuple[float, float]] = None,
    name: Optional[str] = None,
) -> EditorWorkflow:
    if not state_id:
        raise WorkflowEditError("State id must not be empty")
    result = _editable(workflow)
    config = result.configuration
    if state_id in config.states:
        raise WorkflowEditError(f"State already exists: {state_id}")

    config.states[state_id] = StateDefinition(name=name)
    if not config.initial_state:
        config.initial_state = state_id
    if position is not None:
        x, y = position
        result.layout.states.append(StateLayout(id=state_id, position=Position(x=x, y=y)))
    result.touch()
    return result


def update_state(
    workflow: EditorWorkflow,
    state_id: str,
    definition: StateDefinition,
) -> EditorWorkflow:
    result = _editable(workflow)
    _require_state(result.configuration, state_id)
    result.configuration.states[state_id] = definition.model_copy(deep=True)
    result.touch()
    return result


def delete_state(workflow: EditorWorkflow, state_id: str) -> EditorWorkflow:
    """Remove a state, every transition into or out of it, and their layout rows.

    Surviving ordinal rows of states that lost transitions are
    renumbered. Deleting the initial state promotes the first remaining
    state.
    """
    result = _editable(workflow)
    config = result.configuration
    _require_state(config, state_id)

    del config.states[state_id]
    layout = result.layout
    _reindex_transition_rows(layout, state_id, [], set())
    for source_id, state in config.states.items():
        kept = [i for i, t in enumerate(state.transitions) if t.next != state_id]
        if len(kept) == len(state.transitions):
            continue
        state.transitions = [state.transitions[i] for i in kept]
        _reindex_transition_rows(layout, source_id, kept, {t.next for t in state.transitions})

    if config.initial_state == state_id:
        config.initial_state = next(iter(config.states), "")
        logger.debug(f"Initial state {state_id} deleted; now {config.initial_state!r}")

    layout.states = [s for s in layout.states if s.id != state_id]
    result.touch()
    return result


def move_state(workflow: EditorWorkflow, state_id: str, x: float, y: float) -> EditorWorkflow:
    result = _editable(workflow)
    _require_state(result.configuration, state_id)
    row = result.layout.get_state(state_id)
    if row is None:
        result.layout.states.append(StateLayout(id=state_id, position=Position(x=x, y=y)))
    else:
        row.position = Position(x=x, y=y)
    result.touch()
    return result


# ── Transitions ──


def connect(
    workflow: EditorWorkflow,
    source_state_id: str,
    target_state_id: str,
    name: Optional[str] = None,
) -> Tuple[EditorWorkflow, str]:
    """Append a transition and return it with its ordinal id.

    Self-loops and repeated connections to the same target are allowed.
    """
    result = _editable(workflow)
    source = _require_state(result.configuration, source_state_id)
    _require_state(result.configuration, target_state_id)

    source.transitions.append(TransitionDefinition(name=name, next=target_state_id))
    transition_id = generate_ordinal_id(source_state_id, len(source.transitions) - 1)
    result.touch()
    return result, transition_id


def _resolve(config: WorkflowConfiguration, transition_id: str) -> Tuple[StateDefinition, int]:
    ref = parse_ordinal_id(transition_id)
    if ref is None:
        raise WorkflowEditError(f"Invalid transition id: {transition_id}")
    state = _require_state(config, ref.source_state_id)
    if ref.transition_index >= len(state.transitions):
        raise WorkflowEditError(f"Unknown transition: {transition_id}")
    return state, ref.transition_index


def update_transition(
    workflow: EditorWorkflow,
    transition_id: str,
    definition: TransitionDefinition,
) -> EditorWorkflow:
    result = _editable(workflow)
    config = result.configuration
    state, index = _resolve(config, transition_id)
    _require_state(config, definition.next)
    state.transitions[index] = definition.model_copy(deep=True)
    result.touch()
    return result


def disconnect(workflow: EditorWorkflow, transition_id: str) -> EditorWorkflow:
    """Remove the transition addressed by an ordinal id.

    Later transitions of the same state shift down by one index, and
    their ordinal layout rows are renumbered with them. The target-based
    row goes too unless another transition still joins the same pair.
    """
    result = _editable(workflow)
    state, index = _resolve(result.configuration, transition_id)
    source_id = parse_ordinal_id(transition_id).source_state_id
    kept = [i for i in range(len(state.transitions)) if i != index]
    del state.transitions[index]
    _reindex_transition_rows(result.layout, source_id, kept, {t.next for t in state.transitions})
    result.touch()
    return result


def move_transition_label(
    workflow: EditorWorkflow,
    transition_layout_id: str,
    x: float,
    y: float,
) -> EditorWorkflow:
    result = _editable(workflow)
    row = result.layout.get_transition(transition_layout_id)
    if row is None:
        result.layout.transitions.append(
            TransitionLayout(id=transition_layout_id, label_position=Position(x=x, y=y))
        )
    else:
        row.label_position = Position(x=x, y=y)
    result.touch()
    return result
