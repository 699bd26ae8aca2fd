"""
Condition Evaluator: decides whether choice conditions hold for a session.

Evaluation is pure: it reads the traversal state and never mutates it.
- variable: compares a session variable against the authored value
- node_visited: checks the visited set
- previous_choice: checks the node visited immediately before this one
- anything else: holds (unknown kinds never hide a choice)
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, Dict, Iterable, Optional

from treeplayer.core.models import Condition, TraversalState
from treeplayer.utils.error_formatting import format_condition_failure

logger = logging.getLogger(__name__)

_PREFIXED_INT = re.compile(r"^0[xX][0-9a-fA-F]+$|^0[oO][0-7]+$|^0[bB][01]+$")
_DECIMAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
_INFINITY = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def to_number(value: Optional[str]) -> float:
    """Coerce a stored string to a number, NaN when it is not numeric.

    Blank strings count as zero; hex, octal and binary literals and the
    ``Infinity`` spellings are accepted.
    """
    if value is None:
        return math.nan
    text = value.strip()
    if not text:
        return 0.0
    if text in _INFINITY:
        return _INFINITY[text]
    if _PREFIXED_INT.match(text):
        try:
            return float(int(text, 0))
        except OverflowError:
            return math.inf
    if _DECIMAL.match(text):
        return float(text)
    return math.nan


def _exists(stored: Optional[str]) -> bool:
    return stored is not None and stored != ""


def _evaluate_variable(condition: Condition, state: TraversalState) -> bool:
    stored = state.variables.get(condition.variable_name or "")
    operator = condition.operator

    if operator == "equals":
        return stored == condition.value
    elif operator == "not_equals":
        return stored != condition.value
    elif operator == "greater_than":
        # NaN compares false both ways
        return to_number(stored) > to_number(condition.value)
    elif operator == "less_than":
        return to_number(stored) < to_number(condition.value)
    elif operator == "contains":
        if not isinstance(stored, str):
            return False
        return condition.value in stored
    elif operator == "exists":
        return _exists(stored)
    elif operator == "not_exists":
        return not _exists(stored)
    else:
        logger.debug("Unknown operator %r on condition %s", operator, condition.id)
        return False


def _evaluate_node_visited(condition: Condition, state: TraversalState) -> bool:
    was_visited = (condition.target_node_id or "") in state.visited_nodes
    if condition.operator == "not_exists":
        return not was_visited
    return was_visited


def _evaluate_previous_choice(condition: Condition, state: TraversalState) -> bool:
    # Node-level check only: which choice was taken there is not recorded
    return state.previous_node_id == condition.target_node_id


_KIND_EVALUATORS: Dict[str, Callable[[Condition, TraversalState], bool]] = {
    "variable": _evaluate_variable,
    "node_visited": _evaluate_node_visited,
    "previous_choice": _evaluate_previous_choice,
}


def evaluate_condition(condition: Condition, state: TraversalState) -> bool:
    """Return whether a single condition holds for the given state."""
    evaluator = _KIND_EVALUATORS.get(condition.kind)
    if evaluator is None:
        # Unknown kinds do not filter
        logger.debug("Unknown condition kind %r on condition %s", condition.kind, condition.id)
        return True
    result = evaluator(condition, state)
    if not result and condition.kind == "variable":
        logger.debug(
            "Condition %s failed: %s",
            condition.id,
            format_condition_failure(
                condition.variable_name or "",
                condition.operator,
                condition.value,
                state.variables.get(condition.variable_name or ""),
            ),
        )
    return result


def evaluate_all(conditions: Iterable[Condition], state: TraversalState) -> bool:
    """AND over the conditions; an empty list always holds."""
    return all(evaluate_condition(condition, state) for condition in conditions)

