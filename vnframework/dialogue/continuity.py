"""
Dialogue continuity across scene changes.

When a scene is unloaded mid-conversation the UI goes away but the story
should not. DialogueContinuity keeps an in-memory snapshot of where each
runner was and re-presents that node once a new presenter exists.
Snapshots are never written to disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from vnframework.dialogue.presenter import DialoguePresenter
from vnframework.dialogue.runner import DialogueRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DialogueSnapshot:
    graph_name: str
    node_id: str


class DialogueContinuity:
    """Snapshots of interrupted conversations, keyed by graph name."""

    def __init__(self):
        self._snapshots: dict[str, DialogueSnapshot] = {}

    def save(self, runner: DialogueRunner) -> Optional[DialogueSnapshot]:
        """
        Remember where a running conversation is.

        Returns:
            The snapshot, or None if the runner was idle
        """
        node_id = runner.graph.current_node_id
        if not runner.is_active or node_id is None:
            logger.debug(f"Dialogue {runner.graph.name!r} is not running, nothing to save")
            return None

        snapshot = DialogueSnapshot(runner.graph.name, node_id)
        self._snapshots[snapshot.graph_name] = snapshot
        logger.info(f"Saved dialogue {snapshot.graph_name!r} at node {node_id!r}")
        return snapshot

    def restore(self, runner: DialogueRunner, presenter: DialoguePresenter) -> bool:
        """
        Resume a saved conversation with a new presenter.

        The snapshot is consumed whether or not the node still exists.
        """
        snapshot = self._snapshots.pop(runner.graph.name, None)
        if snapshot is None:
            return False

        if snapshot.node_id not in runner.graph:
            logger.warning(
                f"Saved node {snapshot.node_id!r} no longer exists in {snapshot.graph_name!r}"
            )
            return False

        return runner.resume(presenter, snapshot.node_id)

    def has_snapshot(self, graph_name: str) -> bool:
        return graph_name in self._snapshots

    def clear(self, graph_name: Optional[str] = None) -> None:
        """Drop one snapshot, or all of them."""
        if graph_name is None:
            self._snapshots.clear()
        else:
            self._snapshots.pop(graph_name, None)
