"""Formatting helpers for CLI presentation."""

from __future__ import annotations

from typing import List, Mapping

from rich.table import Table

from treeplayer.core.engine.traversal import is_terminal
from treeplayer.core.models import Choice, DecisionTree, TraversalState


def format_choice_target(choice: Choice) -> str:
    return choice.target or "(end)"


def format_conditions(choice: Choice) -> str:
    """AND-joined condition descriptions, empty when the choice is unconditional."""
    return " and ".join(condition.describe() for condition in choice.conditions)


def build_trees_table(trees: List[DecisionTree]) -> Table:
    table = Table(title="Decision Trees", show_header=True, header_style="bold blue")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Nodes", justify="right")
    table.add_column("Created", style="dim")
    for tree in trees:
        created = tree.created_at.strftime("%Y-%m-%d") if tree.created_at else ""
        title = f"{tree.icon} {tree.title}" if tree.icon else tree.title
        table.add_row(tree.id, title, str(len(tree.nodes)), created)
    return table


def build_tree_definition_table(tree: DecisionTree) -> Table:
    table = Table(title="Nodes", show_header=True, header_style="bold blue")
    table.add_column("Node", style="cyan")
    table.add_column("Kind")
    table.add_column("Choice")
    table.add_column("Target", style="green")
    table.add_column("Sets", style="magenta")
    table.add_column("When", style="dim")

    for node in tree.nodes:
        kind = "terminal" if is_terminal(node) else node.kind
        marker = " (root)" if node.id == tree.root_node_id else ""
        if not node.choices:
            table.add_row(f"{node.id}{marker}", kind, "", "", "", "")
            continue
        for idx, choice in enumerate(node.choices):
            sets = ""
            if choice.set_variable is not None:
                sets = f"{choice.set_variable.name}={choice.set_variable.value}"
            table.add_row(
                f"{node.id}{marker}" if idx == 0 else "",
                kind if idx == 0 else "",
                f"{choice.label} [dim]({choice.id})[/dim]",
                format_choice_target(choice),
                sets,
                format_conditions(choice),
            )
    return table


def build_variables_table(variables: Mapping[str, str]) -> Table:
    table = Table(title="Variables")
    table.add_column("Name", style="cyan")
    table.add_column("Value")
    for name, value in variables.items():
        table.add_row(name, value)
    return table


def format_path(state: TraversalState) -> str:
    return " -> ".join([*state.history, state.current_node_id])


__all__ = [
    "format_choice_target",
    "format_conditions",
    "build_trees_table",
    "build_tree_definition_table",
    "build_variables_table",
    "format_path",
]
