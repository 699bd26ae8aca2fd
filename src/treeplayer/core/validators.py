from __future__ import annotations

from collections import Counter
from typing import List

from treeplayer.core.models import (
    CONDITION_KINDS,
    CONDITION_OPERATORS,
    VALUELESS_OPERATORS,
    Choice,
    Condition,
    DecisionTree,
    TreeNode,
)


class TreeValidator:
    """Reports structural problems in an authored tree.

    Trees are edited while they are played, so nothing here blocks play: the
    engine degrades on every issue reported below.
    """

    def __init__(self, tree: DecisionTree):
        self.tree = tree
        self._node_ids = set(tree.node_ids())

    def validate_all(self) -> List[str]:
        """Return list of validation errors for the tree."""
        if not self.tree.nodes:
            return [f"Tree {self._label()} has no nodes"]
        errors: List[str] = []
        errors.extend(self._validate_root())
        errors.extend(self._validate_node_ids())
        for node in self.tree.nodes:
            errors.extend(self._validate_node(node))
        return errors

    def _label(self) -> str:
        return self.tree.id or self.tree.title or "<unnamed>"

    def _validate_root(self) -> List[str]:
        root = self.tree.root_node_id
        first = self.tree.nodes[0].id
        if not root:
            return [f"Tree {self._label()} has no root node; play starts at '{first}'"]
        if root not in self._node_ids:
            return [f"Tree {self._label()} root '{root}' references unknown node; play starts at '{first}'"]
        return []

    def _validate_node_ids(self) -> List[str]:
        counts = Counter(self.tree.node_ids())
        return [
            f"Tree {self._label()} has {count} nodes with id '{node_id}'"
            for node_id, count in counts.items()
            if count > 1
        ]

    def _validate_node(self, node: TreeNode) -> List[str]:
        errors: List[str] = []
        context = f"Node {node.id}"
        if node.kind not in ("question", "terminal"):
            errors.append(f"{context} has unknown kind '{node.kind}' and is treated as terminal")
        if node.kind == "question" and not node.is_end and not node.choices:
            errors.append(f"{context} is a question without choices")

        counts = Counter(choice.id for choice in node.choices)
        for choice_id, count in counts.items():
            if count > 1:
                errors.append(f"{context} has {count} choices with id '{choice_id}'")

        for choice in node.choices:
            errors.extend(self._validate_choice(choice, f"{context} choice '{choice.id}'"))
        return errors

    def _validate_choice(self, choice: Choice, context: str) -> List[str]:
        errors: List[str] = []
        target = choice.target
        if target and target not in self._node_ids:
            errors.append(f"{context} targets unknown node '{target}'")
        if choice.set_variable is not None and not choice.set_variable.name.strip():
            errors.append(f"{context} sets a variable without a name")
        for idx, condition in enumerate(choice.conditions, start=1):
            errors.extend(self._validate_condition(condition, f"{context} condition[{idx}]"))
        return errors

    def _validate_condition(self, condition: Condition, context: str) -> List[str]:
        errors: List[str] = []
        if condition.kind not in CONDITION_KINDS:
            errors.append(f"{context}: unknown kind '{condition.kind}' (always holds)")
            return errors
        if condition.operator not in CONDITION_OPERATORS:
            errors.append(f"{context}: unknown operator '{condition.operator}' (never holds)")

        if condition.kind == "variable":
            if not condition.variable_name:
                errors.append(f"{context}: variable condition without a variable name")
            if condition.operator not in VALUELESS_OPERATORS and condition.operator in CONDITION_OPERATORS:
                if condition.value == "":
                    errors.append(f"{context}: operator '{condition.operator}' requires a value")
            return errors

        target = condition.target_node_id
        if not target:
            errors.append(f"{context}: {condition.kind} condition without a target node")
        elif target not in self._node_ids:
            errors.append(f"{context}: {condition.kind} condition references unknown node '{target}'")
        return errors


__all__ = ["TreeValidator"]
