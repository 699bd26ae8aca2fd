"""
Shared fixtures for tree player tests.
"""

import textwrap
from pathlib import Path

import pytest

from treeplayer.core.models import DecisionTree

SCENARIO_TREE = {
    "id": "scenario",
    "title": "Scenario",
    "root_node_id": "Q1",
    "nodes": [
        {
            "id": "Q1",
            "title": "Are you over 18?",
            "kind": "question",
            "choices": [
                {
                    "id": "yes-id",
                    "label": "Yes",
                    "next_node_id": "Q2",
                    "set_variable": {"name": "age", "value": "adult"},
                },
                {"id": "no-id", "label": "No"},
            ],
        },
        {"id": "Q2", "title": "Welcome", "kind": "question", "choices": []},
    ],
}

COFFEE_YAML = textwrap.dedent(
    """
    id: coffee
    title: Coffee order
    root_node_id: size
    nodes:
      - id: size
        title: What size?
        choices:
          - id: small
            label: Small
            next_node_id: milk
            set_variable: {name: size, value: small}
          - id: large
            label: Large
            next_node_id: milk
            set_variable: {name: size, value: large}
      - id: milk
        title: Any milk?
        choices:
          - id: oat
            label: Oat milk
            next_node_id: done
            set_variable: {name: milk, value: oat}
          - id: extra-shot
            label: Extra shot
            next_node_id: done
            conditions:
              - id: large-only
                kind: variable
                variable_name: size
                operator: equals
                value: large
      - id: done
        title: Order placed
        kind: terminal
    """
)


@pytest.fixture
def scenario_tree() -> DecisionTree:
    """Q1 (Yes -> Q2 setting age=adult, No -> end) and an edgeless Q2."""
    return DecisionTree.model_validate(SCENARIO_TREE)


@pytest.fixture
def trees_dir(tmp_path) -> Path:
    """A trees folder holding the coffee tree."""
    directory = tmp_path / "trees"
    directory.mkdir()
    (directory / "coffee.yaml").write_text(COFFEE_YAML, encoding="utf-8")
    return directory
