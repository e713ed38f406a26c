"""
Auto Layout: hierarchical placement of state nodes on the canvas.

States are ranked by breadth-first distance from the initial state and
from every state nothing points to, so a back-edge such as a resend
loop never pushes its source further down. Within a rank, states are
ordered by the mean slot of their predecessors in the rank above.
Ranks become rows (``TB``/``BT``) or columns (``LR``/``RL``).

Positions are top-left corners of ``node_width`` x ``node_height``
boxes and never negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Dict, List, Literal, Optional

import networkx as nx

from fsm_editor.workflow.workflow_model import (
    CanvasLayout,
    EditorWorkflow,
    Position,
    StateLayout,
    WorkflowConfiguration,
)

logger = getLogger(__name__)

Direction = Literal["TB", "BT", "LR", "RL"]


@dataclass(frozen=True)
class LayoutOptions:
    node_width: float = 160
    node_height: float = 60
    rank_separation: float = 150  # gap between consecutive ranks
    node_separation: float = 120  # gap between neighbours in one rank
    direction: Direction = "TB"


DEFAULT_LAYOUT_OPTIONS = LayoutOptions()


# ============================================================================
# Graph construction and ranking
# ============================================================================


def build_state_graph(configuration: WorkflowConfiguration) -> nx.DiGraph:
    """Directed graph of states; transitions to unknown states are skipped."""
    graph = nx.DiGraph()
    graph.add_nodes_from(configuration.states)
    for source_id, state in configuration.states.items():
        for transition in state.transitions:
            if transition.next in configuration.states:
                graph.add_edge(source_id, transition.next)
    return graph


def _rank_states(graph: nx.DiGraph, initial_state: str) -> Dict[str, int]:
    roots = [node for node in graph if graph.in_degree(node) == 0]
    if initial_state in graph and initial_state not in roots:
        roots.insert(0, initial_state)

    ranks: Dict[str, int] = {}
    while len(ranks) < len(graph):
        unranked = graph.subgraph([node for node in graph if node not in ranks])
        if not roots:
            # only cycles left; start from the first declared state
            roots = [next(iter(unranked))]
        for depth, layer in enumerate(nx.bfs_layers(unranked, roots)):
            for node in layer:
                ranks[node] = depth
        roots = []
    return ranks


def _order_layers(graph: nx.DiGraph, ranks: Dict[str, int]) -> List[List[str]]:
    layers: List[List[str]] = [[] for _ in range(max(ranks.values()) + 1)]
    for node in graph:
        layers[ranks[node]].append(node)

    slot = {node: i for i, node in enumerate(layers[0])}
    for depth in range(1, len(layers)):
        def barycenter(node: str) -> float:
            above = [slot[p] for p in graph.predecessors(node) if ranks[p] == depth - 1]
            return sum(above) / len(above) if above else float("inf")

        layers[depth].sort(key=barycenter)
        slot.update({node: i for i, node in enumerate(layers[depth])})
    return layers


# ============================================================================
# Public API
# ============================================================================


def calculate_auto_layout(
    workflow: EditorWorkflow,
    options: LayoutOptions = DEFAULT_LAYOUT_OPTIONS,
) -> Dict[str, Position]:
    """Compute a position for every state of ``workflow``'s configuration."""
    configuration = workflow.configuration
    if configuration is None or not configuration.states:
        return {}

    graph = build_state_graph(configuration)
    layers = _order_layers(graph, _rank_states(graph, configuration.initial_state))

    vertical = options.direction in ("TB", "BT")
    reverse = options.direction in ("BT", "RL")
    slot_step = (options.node_width if vertical else options.node_height) + options.node_separation
    rank_step = (options.node_height if vertical else options.node_width) + options.rank_separation
    widest = max(len(layer) for layer in layers)

    positions: Dict[str, Position] = {}
    for depth, layer in enumerate(layers):
        rank = len(layers) - 1 - depth if reverse else depth
        offset = (widest - len(layer)) * slot_step / 2
        for index, state_id in enumerate(layer):
            across = offset + index * slot_step
            down = rank * rank_step
            positions[state_id] = (
                Position(x=across, y=down) if vertical else Position(x=down, y=across)
            )

    logger.debug(
        f"Auto-layout of {workflow.id}: {len(positions)} states in "
        f"{len(layers)} ranks ({options.direction})"
    )
    return positions


def apply_layout(workflow: EditorWorkflow, positions: Dict[str, Position]) -> EditorWorkflow:
    """Return a copy of ``workflow`` with ``positions`` written to its layout.

    Existing state rows keep their other properties; states without a
    row get one. Both the layout and the workflow are timestamped.
    """
    result = workflow.clone()
    if result.layout is None:
        result.layout = CanvasLayout(workflow_id=workflow.id)
    layout = result.layout

    for state_id, position in positions.items():
        row = layout.get_state(state_id)
        if row is None:
            layout.states.append(StateLayout(id=state_id, position=position.model_copy()))
        else:
            row.position = position.model_copy()

    result.touch()
    layout.updated_at = result.updated_at
    return result


def auto_layout_workflow(
    workflow: EditorWorkflow,
    options: LayoutOptions = DEFAULT_LAYOUT_OPTIONS,
) -> EditorWorkflow:
    return apply_layout(workflow, calculate_auto_layout(workflow, options))


def can_auto_layout(workflow: Optional[EditorWorkflow]) -> bool:
    """True when every state of a non-empty configuration has a layout row."""
    if workflow is None or not workflow.is_complete:
        return False
    states = workflow.configuration.states
    if not states:
        return False
    placed = {row.id for row in workflow.layout.states}
    return all(state_id in placed for state_id in states)
