from __future__ import annotations

import glob
import json
import logging
import os
from typing import Any, Dict, List, Mapping

import yaml
from pydantic import ValidationError

from treeplayer.core.models import DecisionTree
from treeplayer.io.loaders.errors import LoaderError

logger = logging.getLogger(__name__)

TREE_FILE_EXTENSIONS = (".yaml", ".yml", ".json")


def normalize_tree_record(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten a stored tree record into the DecisionTree field layout.

    Records come in two shapes:
    - current: graph kept under ``tree_data: {nodes, rootNodeId}``
    - legacy: ``nodes`` and ``root_node_id`` as top-level columns

    ``tree_data`` wins when present. Missing node lists become empty and a
    missing root becomes blank so the engine falls back to the first node.
    """
    record = dict(data)
    tree_data = record.pop("tree_data", None)
    if isinstance(tree_data, Mapping):
        nodes = tree_data.get("nodes")
        root = tree_data.get("rootNodeId", tree_data.get("root_node_id"))
        record.pop("root_node_id", None)
        record.pop("rootNodeId", None)
    else:
        nodes = record.get("nodes")
        snake_root = record.pop("root_node_id", None)
        camel_root = record.pop("rootNodeId", None)
        root = snake_root if snake_root is not None else camel_root

    record["nodes"] = nodes if isinstance(nodes, list) else []
    record["root_node_id"] = root or ""
    return record


def parse_tree_record(data: Mapping[str, Any]) -> DecisionTree:
    """Validate a raw record (either shape) into a DecisionTree.

    Raises:
        pydantic.ValidationError: If the record does not describe a tree
    """
    return DecisionTree.model_validate(normalize_tree_record(data))


def _read_tree_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        if path.endswith(".json"):
            return json.load(f)
        return yaml.safe_load(f) or {}


def load_tree_file(path: str) -> DecisionTree:
    """Load one tree from a YAML or JSON file.

    Expected format:
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
    """
    try:
        data = _read_tree_file(path)
    except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise LoaderError(path, "Unreadable tree file", cause=exc) from exc
    if not isinstance(data, Mapping):
        raise LoaderError(path, "Tree file must contain a mapping")
    try:
        tree = parse_tree_record(data)
    except ValidationError as exc:
        raise LoaderError(path, "Invalid tree definition", cause=exc) from exc
    if not tree.id:
        # Trees saved without an id are keyed by file name
        stem = os.path.splitext(os.path.basename(path))[0]
        tree = tree.model_copy(update={"id": stem})
    logger.debug("Loaded tree %s (%d nodes) from %s", tree.id, len(tree.nodes), path)
    return tree


def tree_files(path: str) -> List[str]:
    """Sorted tree files under a directory tree."""
    files: List[str] = []
    for ext in TREE_FILE_EXTENSIONS:
        files.extend(glob.glob(os.path.join(path, "**", f"*{ext}"), recursive=True))
    return sorted(files)


def load_trees(path: str) -> List[DecisionTree]:
    """Load every tree file in a directory, or the single file at ``path``."""
    if not os.path.exists(path):
        return []
    if os.path.isfile(path):
        return [load_tree_file(path)]
    return [load_tree_file(fp) for fp in tree_files(path)]
