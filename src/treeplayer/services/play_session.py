"""Play Session: one user's walk through one tree snapshot."""

from __future__ import annotations

import logging
from typing import List, Optional

from treeplayer.core.engine import traversal
from treeplayer.core.models import Choice, DecisionTree, PlayStatus, TraversalState, TreeNode

logger = logging.getLogger(__name__)


class PlaySession:
    """
    Owns the traversal state of a single play session.

    The tree is an immutable snapshot for the lifetime of the session. Each
    call completes before the next is accepted; the presentation layer is
    expected to serialize user input.
    """

    def __init__(self, tree: DecisionTree):
        self.tree = tree
        self._state = traversal.initialize(tree)
        logger.info("Started tree %s at node %r", tree.id, self._state.current_node_id)

    @property
    def state(self) -> TraversalState:
        return self._state

    @property
    def status(self) -> PlayStatus:
        return traversal.status(self.tree, self._state)

    @property
    def current_node(self) -> Optional[TreeNode]:
        return traversal.current_node(self.tree, self._state)

    @property
    def is_finished(self) -> bool:
        return traversal.is_finished(self.tree, self._state)

    @property
    def step(self) -> int:
        """1-based step number shown to the player."""
        return len(self._state.history) + 1

    def visible_choices(self) -> List[Choice]:
        return traversal.visible_choices(self.tree, self._state)

    def choose(self, choice_id: str) -> bool:
        """Take a choice; returns whether the session moved."""
        before = self._state
        after = traversal.apply_choice(self.tree, before, choice_id)
        if after is before:
            logger.debug("Choice %r ignored at node %r", choice_id, before.current_node_id)
            return False
        self._state = after
        logger.info("Choice %s: %s -> %s", choice_id, before.current_node_id, after.current_node_id)
        return True

    def back(self) -> bool:
        """Step back one node; returns whether there was history to undo."""
        before = self._state
        after = traversal.step_back(before)
        if after is before:
            return False
        self._state = after
        logger.info("Stepped back: %s -> %s", before.current_node_id, after.current_node_id)
        return True

    def restart(self) -> None:
        self._state = traversal.restart(self.tree)
        logger.info("Restarted tree %s at node %r", self.tree.id, self._state.current_node_id)


__all__ = ["PlaySession"]
