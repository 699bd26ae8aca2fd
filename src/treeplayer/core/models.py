"""
Decision tree data models.

These models describe an authored tree and the state of one play session:
- Condition: Predicate gating the visibility of a choice
- Choice: Labeled edge from a question node to another node (or to the end)
- TreeNode: A step in the tree (question or terminal)
- DecisionTree: The authored graph
- TraversalState: Position, history and variables of one play session

Tree Structure:
    Q1 (question)
    ├── "Yes" -> Q2 (sets age = adult)
    │             └── terminal
    └── "No"  -> __END__ (no target, walk ends here)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Reserved current-node id for a walk that ended on a choice without a target
END_NODE_ID = "__END__"

CONDITION_KINDS: Tuple[str, ...] = ("variable", "previous_choice", "node_visited")
CONDITION_OPERATORS: Tuple[str, ...] = (
    "equals",
    "not_equals",
    "greater_than",
    "less_than",
    "contains",
    "exists",
    "not_exists",
)
VALUELESS_OPERATORS: Tuple[str, ...] = ("exists", "not_exists")

# Node types written by earlier versions of the tree builder
_LEGACY_NODE_KINDS = {"dropdown": "question", "image": "terminal"}


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _id_text(value: Any) -> Any:
    # Unquoted numeric ids load from YAML as numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _BaseModel(BaseModel):
    """Base settings shared by all tree models."""

    model_config = ConfigDict(populate_by_name=True)


class Condition(_BaseModel):
    """Predicate evaluated against the session state.

    ``kind`` and ``operator`` are kept as plain strings so that trees written
    by newer builders still load; unknown values are handled at evaluation.
    """

    id: str = ""
    kind: str = Field("variable", validation_alias=AliasChoices("kind", "type"))
    variable_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("variable_name", "variableName", "variable")
    )
    target_node_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("target_node_id", "targetNodeId", "nodeId")
    )
    # Authored for previous_choice conditions but not consulted by evaluation
    choice_id: Optional[str] = Field(None, validation_alias=AliasChoices("choice_id", "choiceId"))
    operator: str = "equals"
    value: str = ""

    @field_validator("id", "variable_name", "target_node_id", "choice_id", mode="before")
    @classmethod
    def _ids_as_text(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> str:
        return _stringify(value)

    def describe(self) -> str:
        """Human-readable description of this condition."""
        from treeplayer.utils.error_formatting import get_operator_symbol

        symbol = get_operator_symbol(self.operator)
        if self.kind == "variable":
            name = self.variable_name or "<unnamed>"
            if self.operator in VALUELESS_OPERATORS:
                return f"{name} {symbol}"
            return f"{name} {symbol} {self.value}"
        if self.kind == "node_visited":
            target = self.target_node_id or "<none>"
            if self.operator == "not_exists":
                return f"not visited {target}"
            return f"visited {target}"
        if self.kind == "previous_choice":
            return f"came from {self.target_node_id or '<none>'}"
        return f"{self.kind} condition"


class VariableAssignment(_BaseModel):
    name: str
    value: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _name_as_text(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> str:
        return _stringify(value)


class Choice(_BaseModel):
    """Outgoing edge of a question node."""

    id: str
    label: str = ""
    next_node_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("next_node_id", "nextNodeId")
    )
    conditions: List[Condition] = Field(default_factory=list)
    set_variable: Optional[VariableAssignment] = Field(
        None, validation_alias=AliasChoices("set_variable", "setVariable")
    )

    @field_validator("id", "next_node_id", mode="before")
    @classmethod
    def _ids_as_text(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("conditions", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def target(self) -> str:
        """Trimmed target id, empty when the choice ends the walk."""
        return (self.next_node_id or "").strip()


class TreeNode(_BaseModel):
    """A vertex in the decision tree."""

    id: str
    title: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, validation_alias=AliasChoices("image_url", "imageUrl"))
    kind: str = Field("question", validation_alias=AliasChoices("kind", "type"))
    choices: List[Choice] = Field(default_factory=list)
    is_end: bool = Field(False, validation_alias=AliasChoices("is_end", "isEnd"))

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("kind", mode="before")
    @classmethod
    def _map_legacy_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _LEGACY_NODE_KINDS.get(value, value)
        return value

    @field_validator("choices", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("is_end", mode="before")
    @classmethod
    def _none_as_false(cls, value: Any) -> Any:
        return False if value is None else value

    def find_choice(self, choice_id: str) -> Optional[Choice]:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


class DecisionTree(_BaseModel):
    """An authored decision tree, treated as an immutable snapshot while played."""

    id: str = ""
    title: str = ""
    description: Optional[str] = None
    icon: Optional[str] = None
    nodes: List[TreeNode] = Field(default_factory=list)
    root_node_id: str = Field("", validation_alias=AliasChoices("root_node_id", "rootNodeId"))
    created_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )

    @field_validator("nodes", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("root_node_id", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else _id_text(value)

    def node(self, node_id: Optional[str]) -> Optional[TreeNode]:
        """Return the first node with the given id, if any."""
        if not node_id:
            return None
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]


class TraversalState(BaseModel):
    """State of one play session.

    Fields cannot be reassigned. Transitions build a new value with its own
    copy of ``variables``; callers treat that mapping as read-only.
    """

    current_node_id: str = ""
    history: Tuple[str, ...] = ()
    variables: Dict[str, str] = Field(default_factory=dict)
    visited_nodes: FrozenSet[str] = frozenset()

    model_config = ConfigDict(frozen=True)

    @property
    def previous_node_id(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    @property
    def at_end_sentinel(self) -> bool:
        return self.current_node_id == END_NODE_ID

    def __hash__(self) -> int:
        return hash((self.current_node_id, self.history, frozenset(self.variables.items()), self.visited_nodes))


class PlayStatus(str, Enum):
    """What the presentation layer should render for a state."""

    EMPTY_TREE = "empty_tree"  # Tree has no nodes
    NODE_NOT_FOUND = "node_not_found"  # Current id points at no node
    IN_PROGRESS = "in_progress"  # Question node with a usable edge
    FINISHED = "finished"  # End sentinel or terminal node


__all__ = [
    "END_NODE_ID",
    "CONDITION_KINDS",
    "CONDITION_OPERATORS",
    "VALUELESS_OPERATORS",
    "Condition",
    "VariableAssignment",
    "Choice",
    "TreeNode",
    "DecisionTree",
    "TraversalState",
    "PlayStatus",
]
