"""Repository Layer: Clean abstractions for tree storage."""

from __future__ import annotations

from .tree_repository import InMemoryTreeRepository, TreeRepository, YamlTreeRepository

__all__ = [
    "InMemoryTreeRepository",
    "TreeRepository",
    "YamlTreeRepository",
]
