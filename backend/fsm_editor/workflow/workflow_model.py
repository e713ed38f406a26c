"""
Workflow Data Models: functional configuration, canvas layout, and the
combined editor workflow.

These are the serializable documents the editor exchanges with its
backend and stores in the undo/redo timeline. Field names are snake_case
in Python and camelCase on the wire (``initialState``, ``labelPosition``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentModel(BaseModel):
    """Base for every wire document: camelCase aliases, both spellings accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> Dict[str, Any]:
        """Plain JSON-ready dict using the wire (camelCase) keys."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ============================================================================
# Functional configuration
# ============================================================================


class ProcessorDefinition(DocumentModel):
    """An externalized processor attached to a transition."""

    name: str
    execution_mode: Optional[Literal["SYNC", "ASYNC_SAME_TX", "ASYNC_NEW_TX"]] = None
    config: Optional[Dict[str, Any]] = None


class TransitionDefinition(DocumentModel):
    """One outgoing transition of a state.

    Transitions carry no identifier of their own: their position in the
    owning state's ``transitions`` list is their identity.
    """

    name: Optional[str] = None
    next: str  # target state id
    manual: bool = False
    disabled: bool = False
    criterion: Optional[Dict[str, Any]] = None
    processors: Optional[List[ProcessorDefinition]] = None


class StateDefinition(DocumentModel):
    name: Optional[str] = None
    transitions: List[TransitionDefinition] = Field(default_factory=list)


class WorkflowConfiguration(DocumentModel):
    """The functional (non-positional) description of a state machine."""

    version: str = "1.0"
    name: str = "Untitled Workflow"
    desc: Optional[str] = None
    initial_state: str = ""
    active: Optional[bool] = None
    criterion: Optional[Dict[str, Any]] = None
    states: Dict[str, StateDefinition] = Field(default_factory=dict)

    def state_ids(self) -> Set[str]:
        return set(self.states.keys())

    def transition_count(self) -> int:
        return sum(len(s.transitions) for s in self.states.values())

    def validate_graph(self) -> List[str]:
        """Validate the configuration structure.

        Returns a list of error messages (empty = valid).
        """
        errors: List[str] = []

        if not self.states:
            errors.append("Workflow must define at least one state.")

        if not self.initial_state:
            errors.append("Workflow must declare an initial state.")
        elif self.initial_state not in self.states:
            errors.append(f"Initial state '{self.initial_state}' is not defined.")

        for state_id, state in self.states.items():
            for index, transition in enumerate(state.transitions):
                if transition.next not in self.states:
                    errors.append(
                        f"Transition {index} of state '{state_id}' targets "
                        f"unknown state: {transition.next}"
                    )

        return errors


# ============================================================================
# Canvas layout
# ============================================================================


class Position(DocumentModel):
    x: float = 0
    y: float = 0


class StateLayout(DocumentModel):
    """Canvas position (and optional styling) of one state node."""

    id: str
    position: Position = Field(default_factory=Position)
    properties: Optional[Dict[str, Any]] = None


class TransitionLayout(DocumentModel):
    """Visual annotations of one transition edge.

    ``id`` is either a target-based (``source-to-target``) or an
    ordinal (``source-<index>``) transition id.
    """

    id: str
    label_position: Optional[Position] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


class CanvasLayout(DocumentModel):
    workflow_id: str
    states: List[StateLayout] = Field(default_factory=list)
    transitions: List[TransitionLayout] = Field(default_factory=list)
    version: int = 1
    updated_at: str = Field(default_factory=_now_iso)

    def get_state(self, state_id: str) -> Optional[StateLayout]:
        for s in self.states:
            if s.id == state_id:
                return s
        return None

    def get_transition(self, transition_id: str) -> Optional[TransitionLayout]:
        for t in self.transitions:
            if t.id == transition_id:
                return t
        return None


# ============================================================================
# Combined editor workflow
# ============================================================================


class EditorWorkflow(DocumentModel):
    """Configuration and layout edited together as one unit.

    Either half may be missing while a workflow is still loading.
    Everything reachable from here must stay plain data so that
    ``model_copy(deep=True)`` yields a fully independent snapshot.
    """

    id: str
    entity_id: str = ""
    configuration: Optional[WorkflowConfiguration] = None
    layout: Optional[CanvasLayout] = None
    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    @property
    def is_complete(self) -> bool:
        return self.configuration is not None and self.layout is not None

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp."""
        self.updated_at = _now_iso()

    def clone(self) -> "EditorWorkflow":
        return self.model_copy(deep=True)
