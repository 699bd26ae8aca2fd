"""
Traversal Engine: state machine for playing a decision tree.

Every operation takes the tree snapshot and a TraversalState and returns a new
TraversalState; nothing is mutated in place. Malformed input never raises:
- missing root: falls back to the first node
- unknown choice id: state returned unchanged
- choice without a target: walk ends on the END_NODE_ID sentinel
- current id naming no node: reported as PlayStatus.NODE_NOT_FOUND
"""

from __future__ import annotations

import logging
from typing import List, Optional

from treeplayer.core.models import (
    END_NODE_ID,
    Choice,
    DecisionTree,
    PlayStatus,
    TraversalState,
    TreeNode,
)

from .condition_evaluator import evaluate_all

logger = logging.getLogger(__name__)


def resolve_start_node_id(tree: DecisionTree) -> str:
    """Root id when it names a node, else the first node's id, else ''."""
    if tree.root_node_id and tree.node(tree.root_node_id) is not None:
        return tree.root_node_id
    if tree.nodes:
        if tree.root_node_id:
            logger.info(
                "Root node %r not found in tree %s, starting at %r",
                tree.root_node_id,
                tree.id,
                tree.nodes[0].id,
            )
        return tree.nodes[0].id
    return ""


def initialize(tree: DecisionTree) -> TraversalState:
    """Fresh session state positioned on the start node."""
    return TraversalState(
        current_node_id=resolve_start_node_id(tree),
        history=(),
        variables={},
        visited_nodes=frozenset(),
    )


def restart(tree: DecisionTree) -> TraversalState:
    """Discard history, variables and visited set; start over."""
    return initialize(tree)


def current_node(tree: DecisionTree, state: TraversalState) -> Optional[TreeNode]:
    return tree.node(state.current_node_id)


def is_terminal(node: Optional[TreeNode]) -> bool:
    """
    Whether a walk cannot continue past this node.

    Explicit markers (``is_end``, non-question kind) and the structural check
    (no choice with a usable target) are independent; any one suffices.
    """
    if node is None:
        return False
    if node.is_end:
        return True
    if node.kind != "question":
        return True
    has_edge = any(choice.target for choice in node.choices)
    return not has_edge


def is_finished(tree: DecisionTree, state: TraversalState) -> bool:
    if state.at_end_sentinel:
        return True
    return is_terminal(current_node(tree, state))


def status(tree: DecisionTree, state: TraversalState) -> PlayStatus:
    if not tree.nodes:
        return PlayStatus.EMPTY_TREE
    if is_finished(tree, state):
        return PlayStatus.FINISHED
    if current_node(tree, state) is None:
        return PlayStatus.NODE_NOT_FOUND
    return PlayStatus.IN_PROGRESS


def visible_choices(tree: DecisionTree, state: TraversalState) -> List[Choice]:
    """Choices of the current node whose conditions all hold, in authored order."""
    node = current_node(tree, state)
    if node is None or is_finished(tree, state):
        return []
    return [choice for choice in node.choices if evaluate_all(choice.conditions, state)]


def apply_choice(tree: DecisionTree, state: TraversalState, choice_id: str) -> TraversalState:
    """
    Take a choice on the current node.

    Steps:
    1. Ignore the call when finished, when the current node is missing, or when
       the choice id is not one of its choices
    2. Apply the choice's variable assignment to a copy of the variables
    3. Mark the current node visited
    4. Move to the trimmed target id, or to END_NODE_ID when there is none
    5. Push the current id onto the history
    """
    node = current_node(tree, state)
    if node is None or is_finished(tree, state):
        logger.debug("Ignoring choice %r: no active node at %r", choice_id, state.current_node_id)
        return state

    choice = node.find_choice(choice_id)
    if choice is None:
        logger.debug("Ignoring choice %r: not a choice of node %s", choice_id, node.id)
        return state

    variables = dict(state.variables)
    if choice.set_variable is not None:
        variables[choice.set_variable.name] = choice.set_variable.value

    visited = set(state.visited_nodes)
    if state.current_node_id:
        visited.add(state.current_node_id)

    next_id = choice.target or END_NODE_ID

    return TraversalState(
        current_node_id=next_id,
        history=state.history + (state.current_node_id,),
        variables=variables,
        visited_nodes=frozenset(visited),
    )


def step_back(state: TraversalState) -> TraversalState:
    """
    Return to the previous node.

    Only position and history are undone; variables and the visited set keep
    everything recorded so far.
    """
    if not state.history:
        return state
    return TraversalState(
        current_node_id=state.history[-1],
        history=state.history[:-1],
        variables=dict(state.variables),
        visited_nodes=state.visited_nodes,
    )


__all__ = [
    "resolve_start_node_id",
    "initialize",
    "restart",
    "current_node",
    "is_terminal",
    "is_finished",
    "status",
    "visible_choices",
    "apply_choice",
    "step_back",
]
