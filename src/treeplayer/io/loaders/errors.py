"""Errors raised while reading tree files."""

from __future__ import annotations

import os
from typing import List

from pydantic import ValidationError

# Pydantic errors quoted in a message before the rest are summarized
MAX_REPORTED_ERRORS = 3


def summarize_validation_error(error: ValidationError, limit: int = MAX_REPORTED_ERRORS) -> str:
    """One-line summary of a pydantic error, e.g. ``nodes.0.id: Field required``."""
    details = error.errors()
    parts: List[str] = []
    for detail in details[:limit]:
        where = ".".join(str(part) for part in detail.get("loc", ())) or "<tree>"
        parts.append(f"{where}: {detail.get('msg') or detail.get('type')}")
    if len(details) > limit:
        parts.append(f"... ({len(details) - limit} more)")
    return "; ".join(parts)


def display_path(path: str) -> str:
    """Path relative to the working directory when one exists."""
    try:
        return os.path.relpath(path)
    except ValueError:  # pragma: no cover - different drive on Windows
        return path


class LoaderError(RuntimeError):
    """A tree file that could not be read or does not describe a tree."""

    def __init__(self, file_path: str, message: str, *, cause: Exception | None = None):
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.message} ({display_path(self.file_path)})"
        if isinstance(self.cause, ValidationError):
            return f"{text}: {summarize_validation_error(self.cause)}"
        if self.cause is not None:
            return f"{text}: {self.cause}"
        return text


__all__ = ["LoaderError", "summarize_validation_error"]
