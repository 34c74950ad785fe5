"""
Dialogue sequences - several graphs owned by one speaker, played in order.

An NPC that says something new after each conversation owns a sequence.
The graph that plays is the first one, from the saved index on, whose
one-time start node is not completed yet. A graph whose start node is not
one-time stays current forever. When a conversation ends with its start
node completed, the sequence moves to the next graph and saves the index.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from vnframework.dialogue.errors import DialogueError
from vnframework.dialogue.graph import DialogueGraph
from vnframework.dialogue.persistence import MemoryProgressStore, ProgressStore
from vnframework.dialogue.presenter import DialoguePresenter
from vnframework.dialogue.runner import DialogueRunner

logger = logging.getLogger(__name__)


class DialogueSequence:
    """
    Ordered dialogue graphs for one owner.

    Args:
        owner: Name of the speaker, used in the progress key
        runners: One runner per graph, in play order
        progress_store: Where the current index is saved
    """

    def __init__(
        self,
        owner: str,
        runners: Sequence[DialogueRunner],
        progress_store: Optional[ProgressStore] = None,
    ):
        self.owner = owner
        self.runners = list(runners)
        self.progress_store = progress_store or MemoryProgressStore()

        self._active_runner: Optional[DialogueRunner] = None
        self._on_dialogue_end: Optional[Callable[[], None]] = None
        self.index = self._load_index()

    @property
    def progress_key(self) -> str:
        return f"NPC_{self.owner}_DialogueIndex"

    @property
    def is_active(self) -> bool:
        return self._active_runner is not None

    def _load_index(self) -> int:
        index = self.progress_store.get_index(self.progress_key)
        if index > len(self.runners):
            logger.warning(
                f"Saved dialogue index {index} for {self.owner!r} is past the last graph, "
                f"clamping to {len(self.runners)}"
            )
            index = len(self.runners)
        return index

    def _is_used_up(self, runner: DialogueRunner) -> bool:
        start = runner.graph.start
        return start is not None and start.tracks_completion() and runner.is_dialogue_completed(start)

    def current_runner(self) -> Optional[DialogueRunner]:
        """
        Runner of the graph that should play next.

        Returns:
            None once every graph is used up
        """
        for index in range(self.index, len(self.runners)):
            runner = self.runners[index]
            if not self._is_used_up(runner):
                self.index = index
                return runner
        return None

    def current_graph(self) -> Optional[DialogueGraph]:
        runner = self.current_runner()
        return runner.graph if runner else None

    def start(self, presenter: Optional[DialoguePresenter], from_timeline: bool = False) -> bool:
        """
        Start the current graph.

        Returns:
            False if a conversation of this sequence is running, nothing is
            left to say, or the runner refused to start
        """
        if self._active_runner is not None:
            logger.warning(f"Dialogue of {self.owner!r} is already running, ignoring start")
            return False

        runner = self.current_runner()
        if runner is None:
            logger.info(f"{self.owner!r} has no dialogue left")
            return False

        # Registered first: a graph can end while it starts
        self._active_runner = runner
        runner.on_dialogue_end(self._on_runner_ended)
        try:
            started = runner.start_dialogue(presenter, from_timeline=from_timeline)
        except DialogueError:
            self._release(runner)
            raise

        if not started:
            self._release(runner)
        return started

    def _release(self, runner: DialogueRunner) -> None:
        runner.on_dialogue_end(None)
        if self._active_runner is runner:
            self._active_runner = None

    def _on_runner_ended(self) -> None:
        runner = self._active_runner
        if runner is None:
            return
        self._release(runner)

        if self.index < len(self.runners) and self.runners[self.index] is runner and self._is_used_up(runner):
            self.index += 1
            self.progress_store.set_index(self.progress_key, self.index)
            logger.info(f"{self.owner!r} moves on to dialogue {self.index}")

        if self._on_dialogue_end:
            self._on_dialogue_end()

    def on_dialogue_end(self, callback: Optional[Callable[[], None]]) -> None:
        """Set callback for when a conversation of this sequence ends."""
        self._on_dialogue_end = callback

    def reset(self) -> None:
        """Go back to the first graph. Completion records are left alone."""
        self.index = 0
        self.progress_store.set_index(self.progress_key, 0)
