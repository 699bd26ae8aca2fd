"""Tree Repository: storage abstraction for decision tree definitions."""

from __future__ import annotations

import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List

import yaml

from treeplayer.core.models import DecisionTree
from treeplayer.io.loaders.tree_loader import load_tree_file, tree_files
from treeplayer.utils.logging import log_calls

logger = logging.getLogger(__name__)


def _prepare_for_save(tree: DecisionTree) -> DecisionTree:
    """Assign an id and creation time to trees that have none yet."""
    update: Dict[str, object] = {}
    if not tree.id:
        update["id"] = uuid.uuid4().hex
    if tree.created_at is None:
        update["created_at"] = datetime.now(timezone.utc)
    return tree.model_copy(update=update) if update else tree


class TreeRepository(ABC):
    """Persistence collaborator that supplies and stores tree definitions."""

    @abstractmethod
    def get(self, tree_id: str) -> DecisionTree:
        """
        Get a tree by id.

        Raises:
            KeyError: If the tree does not exist
        """

    @abstractmethod
    def list_all(self) -> List[DecisionTree]:
        """List stored trees, newest first."""

    @abstractmethod
    def save(self, tree: DecisionTree) -> DecisionTree:
        """
        Create or replace a tree.

        Trees without an id get a fresh one; the stored value is returned.
        """

    @abstractmethod
    def delete(self, tree_id: str) -> None:
        """
        Delete a tree by id.

        Raises:
            KeyError: If the tree does not exist
        """

    def exists(self, tree_id: str) -> bool:
        try:
            self.get(tree_id)
        except KeyError:
            return False
        return True

    @staticmethod
    def _newest_first(trees: List[DecisionTree]) -> List[DecisionTree]:
        epoch = datetime.min.replace(tzinfo=timezone.utc)

        def _key(tree: DecisionTree) -> datetime:
            created = tree.created_at
            if created is None:
                return epoch
            if created.tzinfo is None:
                return created.replace(tzinfo=timezone.utc)
            return created

        return sorted(trees, key=_key, reverse=True)


class InMemoryTreeRepository(TreeRepository):
    """Dictionary-backed repository for tests and embedding."""

    def __init__(self, trees: List[DecisionTree] | None = None):
        self._trees: Dict[str, DecisionTree] = {}
        for tree in trees or []:
            self.save(tree)

    def get(self, tree_id: str) -> DecisionTree:
        if tree_id not in self._trees:
            raise KeyError(f"Tree not found: {tree_id}")
        return self._trees[tree_id]

    def list_all(self) -> List[DecisionTree]:
        return self._newest_first(list(self._trees.values()))

    def save(self, tree: DecisionTree) -> DecisionTree:
        stored = _prepare_for_save(tree)
        self._trees[stored.id] = stored
        return stored

    def delete(self, tree_id: str) -> None:
        if tree_id not in self._trees:
            raise KeyError(f"Tree not found: {tree_id}")
        del self._trees[tree_id]


class YamlTreeRepository(TreeRepository):
    """
    Directory of tree files, one tree per file.

    Existing ``.yaml``, ``.yml`` and ``.json`` files are read; saved trees are
    written as ``<id>.yaml``.
    """

    def __init__(self, directory: str):
        """
        Initialize tree repository.

        Args:
            directory: Folder holding the tree files
        """
        self.directory = directory

    def _index(self) -> Dict[str, str]:
        """Map tree id to file path; the first file wins on duplicate ids."""
        index: Dict[str, str] = {}
        if not os.path.isdir(self.directory):
            return index
        for fp in tree_files(self.directory):
            tree = load_tree_file(fp)
            if tree.id in index:
                logger.warning("Duplicate tree id %s in %s (already in %s)", tree.id, fp, index[tree.id])
                continue
            index[tree.id] = fp
        return index

    def _free_path(self, tree_id: str) -> str:
        """
        Path for a new ``<id>.yaml`` file that no other tree occupies.

        A numeric suffix is added when the file name is taken by a tree with a
        different id.

        Raises:
            ValueError: If the id cannot be used as a file name
        """
        separators = [sep for sep in (os.sep, os.altsep, "/") if sep]
        if not tree_id.strip(".") or any(sep in tree_id for sep in separators):
            raise ValueError(f"Tree id cannot be used as a file name: {tree_id!r}")
        path = os.path.join(self.directory, f"{tree_id}.yaml")
        suffix = 1
        while os.path.exists(path):
            path = os.path.join(self.directory, f"{tree_id}-{suffix}.yaml")
            suffix += 1
        return path

    @log_calls()
    def get(self, tree_id: str) -> DecisionTree:
        path = self._index().get(tree_id)
        if path is None:
            raise KeyError(f"Tree not found: {tree_id}")
        return load_tree_file(path)

    @log_calls()
    def list_all(self) -> List[DecisionTree]:
        return self._newest_first([load_tree_file(fp) for fp in self._index().values()])

    @log_calls()
    def save(self, tree: DecisionTree) -> DecisionTree:
        stored = _prepare_for_save(tree)
        os.makedirs(self.directory, exist_ok=True)
        path = self._index().get(stored.id)
        if path is None or not path.endswith((".yaml", ".yml")):
            previous = path
            path = self._free_path(stored.id)
            if previous is not None:
                os.remove(previous)
        data = stored.model_dump(mode="json", exclude_none=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        logger.info("Saved tree %s to %s", stored.id, path)
        return stored

    @log_calls()
    def delete(self, tree_id: str) -> None:
        path = self._index().get(tree_id)
        if path is None:
            raise KeyError(f"Tree not found: {tree_id}")
        os.remove(path)
        logger.info("Deleted tree %s (%s)", tree_id, path)


__all__ = ["TreeRepository", "InMemoryTreeRepository", "YamlTreeRepository"]
