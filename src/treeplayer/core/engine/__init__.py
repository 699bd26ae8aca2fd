from .condition_evaluator import evaluate_all, evaluate_condition
from .traversal import (
    apply_choice,
    current_node,
    initialize,
    is_finished,
    is_terminal,
    resolve_start_node_id,
    restart,
    status,
    step_back,
    visible_choices,
)

__all__ = [
    "evaluate_condition",
    "evaluate_all",
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
