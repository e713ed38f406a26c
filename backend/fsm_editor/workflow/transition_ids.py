"""
Transition Identity Codec: one source of truth for transition ids.

Transitions have no key of their own in a ``WorkflowConfiguration``,
so every id is derived from the owning state. Two forms exist:

* Target-based (canonical layout form)::

      <source>-to-<target>

  Literal hyphens (and the escape character itself) inside either state
  id are backslash-escaped, so the first unescaped ``-to-`` is always the
  separator. ``email-sent`` -> ``pending-to-email\\-sent``. Ids written
  by older layouts without escaping still parse whenever the source
  state name does not itself contain ``-to-``.

* Ordinal (positional form)::

      <source>-<index>

  Addresses the ``index``-th entry of the source state's transition
  list. Used to tell apart several transitions to the same target,
  self-loops included.
"""

from __future__ import annotations

from logging import getLogger
from typing import Dict, Iterable, NamedTuple, Optional

from fsm_editor.workflow.workflow_model import StateDefinition, TransitionDefinition

logger = getLogger(__name__)

SEPARATOR = "-to-"
ESCAPE = "\\"


class TransitionEndpoints(NamedTuple):
    source_state_id: str
    target_state_id: str


class OrdinalTransitionRef(NamedTuple):
    source_state_id: str
    transition_index: int


# ====================================================================
# Escaping
# ====================================================================


def escape_state_id(state_id: str) -> str:
    return state_id.replace(ESCAPE, ESCAPE + ESCAPE).replace("-", ESCAPE + "-")


def unescape_state_id(escaped: str) -> str:
    out = []
    i = 0
    while i < len(escaped):
        ch = escaped[i]
        if ch == ESCAPE and i + 1 < len(escaped):
            out.append(escaped[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _find_separator(transition_id: str) -> int:
    """Index of the first ``-to-`` not preceded by an escape, or -1."""
    i = 0
    while i < len(transition_id):
        if transition_id[i] == ESCAPE:
            i += 2
            continue
        if transition_id.startswith(SEPARATOR, i):
            return i
        i += 1
    return -1


# ====================================================================
# Target-based form
# ====================================================================


def generate_transition_id(source_state_id: str, target_state_id: str) -> str:
    """Build the target-based id ``<source>-to-<target>``."""
    return escape_state_id(source_state_id) + SEPARATOR + escape_state_id(target_state_id)


def parse_transition_id(transition_id: str) -> Optional[TransitionEndpoints]:
    """Split a target-based id into its endpoints.

    Returns ``None`` when the separator is missing or either side is
    empty after unescaping. Never raises.
    """
    if not isinstance(transition_id, str) or not transition_id:
        return None
    index = _find_separator(transition_id)
    if index == -1:
        return None
    source = unescape_state_id(transition_id[:index])
    target = unescape_state_id(transition_id[index + len(SEPARATOR):])
    if not source or not target:
        return None
    return TransitionEndpoints(source, target)


# ====================================================================
# Ordinal form
# ====================================================================


def generate_ordinal_id(source_state_id: str, transition_index: int) -> str:
    """Build the ordinal id ``<source>-<index>``."""
    return f"{source_state_id}-{transition_index}"


def parse_ordinal_id(transition_id: str) -> Optional[OrdinalTransitionRef]:
    if not isinstance(transition_id, str):
        return None
    cut = transition_id.rfind("-")
    if cut <= 0:
        return None
    index_str = transition_id[cut + 1:]
    # int() rejects some isdigit() characters, e.g. superscripts
    if not index_str.isascii() or not index_str.isdigit():
        return None
    return OrdinalTransitionRef(transition_id[:cut], int(index_str))


# ====================================================================
# Validation
# ====================================================================


def validate_transition_id(transition_id: str, known_state_ids: Iterable[str]) -> bool:
    """True only if every state the id references is known.

    The target-based form is tried first; when it does not parse or
    names an unknown state, the ordinal form's source is checked.
    """
    known = known_state_ids if isinstance(known_state_ids, (set, frozenset)) else set(known_state_ids)

    endpoints = parse_transition_id(transition_id)
    if endpoints is not None:
        if endpoints.source_state_id in known and endpoints.target_state_id in known:
            return True

    ref = parse_ordinal_id(transition_id)
    if ref is not None and ref.source_state_id in known:
        return True

    return False


def validate_transition_exists(transition_id: str, states: Dict[str, StateDefinition]) -> bool:
    """The ordinal id names an existing state and an in-range index."""
    return get_transition_definition(transition_id, states) is not None


# ====================================================================
# Configuration lookups
# ====================================================================


def get_transition_definition(
    transition_id: str,
    states: Dict[str, StateDefinition],
) -> Optional[TransitionDefinition]:
    ref = parse_ordinal_id(transition_id)
    if ref is None:
        return None
    state = states.get(ref.source_state_id)
    if state is None or ref.transition_index >= len(state.transitions):
        return None
    return state.transitions[ref.transition_index]


def find_transition_id(
    source_state_id: str,
    target_state_id: str,
    states: Dict[str, StateDefinition],
) -> Optional[str]:
    """Ordinal id of the first transition from source to target."""
    state = states.get(source_state_id)
    if state is None:
        return None
    for index, transition in enumerate(state.transitions):
        if transition.next == target_state_id:
            return generate_ordinal_id(source_state_id, index)
    return None


def migrate_layout_transition_id(
    transition_id: str,
    states: Dict[str, StateDefinition],
) -> Optional[str]:
    """Convert a target-based layout id to the ordinal form."""
    endpoints = parse_transition_id(transition_id)
    if endpoints is None:
        return None
    migrated = find_transition_id(endpoints.source_state_id, endpoints.target_state_id, states)
    if migrated is None:
        logger.debug(f"No transition matches layout id {transition_id!r}")
    return migrated
