"""Utilities for resolving the trees directory."""

from __future__ import annotations

from pathlib import Path


def trees_dir() -> Path:
    return Path.cwd() / "trees"


def trees_path(path: str | None) -> str:
    """Explicit path when given, otherwise ./trees under the working directory."""
    return path or str(trees_dir())


__all__ = [
    "trees_dir",
    "trees_path",
]
