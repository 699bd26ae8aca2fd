"""Play Service: opens play sessions against an injected tree repository."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from treeplayer.core.validators import TreeValidator
from treeplayer.repositories.tree_repository import TreeRepository

from .play_session import PlaySession

logger = logging.getLogger(__name__)


class PlayService:
    """
    High-level service for playing stored trees.

    Coordinates tree retrieval, session creation, choice replay and validation.
    """

    def __init__(self, repository: TreeRepository):
        """
        Initialize play service.

        Args:
            repository: Source of tree definitions
        """
        self.repository = repository

    def start(self, tree_id: str) -> PlaySession:
        """
        Open a new session on a stored tree.

        Raises:
            KeyError: If the tree does not exist
        """
        tree = self.repository.get(tree_id)
        return PlaySession(tree)

    def walk(self, tree_id: str, choice_ids: Iterable[str]) -> Tuple[PlaySession, List[str]]:
        """
        Replay choice ids from the start of a tree.

        Choices that do not apply at the node reached are skipped, as an
        interactive player would ignore them.

        Returns:
            Tuple of (session after the replay, list of ignored choice ids)

        Raises:
            KeyError: If the tree does not exist
        """
        session = self.start(tree_id)
        ignored: List[str] = []
        for choice_id in choice_ids:
            if not session.choose(choice_id):
                ignored.append(choice_id)
        if ignored:
            logger.warning("Ignored %d choice(s) while replaying tree %s: %s", len(ignored), tree_id, ignored)
        return session, ignored

    def validate(self, tree_id: str) -> List[str]:
        """
        Structural validation messages for a stored tree.

        Raises:
            KeyError: If the tree does not exist
        """
        return TreeValidator(self.repository.get(tree_id)).validate_all()

    def validate_all(self) -> Dict[str, List[str]]:
        """Validation messages for every stored tree, keyed by tree id."""
        return {tree.id: TreeValidator(tree).validate_all() for tree in self.repository.list_all()}


__all__ = ["PlayService"]
