"""Service Layer: Play sessions and orchestration."""

from __future__ import annotations

from .play_service import PlayService
from .play_session import PlaySession

__all__ = [
    "PlayService",
    "PlaySession",
]
