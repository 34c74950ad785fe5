"""
Dialogue runner - walks a DialogueGraph one node at a time.

The runner owns the traversal state machine (idle/active) and is the only
thing that moves a graph's cursor. Nodes report what should happen next;
the runner decides whether to advance, wait, or end.

Usage:
    runner = DialogueRunner(graph, game_state=state, effects=player)
    runner.start_dialogue(presenter)
    runner.next()                 # player clicked through a line
    runner.select_option(1)       # player picked an option
    runner.present_item("knife")  # player presented evidence
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Callable, Optional

from vnengine.core.events import DialogueEvent, EventBus
from vnframework.dialogue.backends import AnimType, EffectPlayer, GameStateBackend, ShakeLevel
from vnframework.dialogue.config import DialogueConfig
from vnframework.dialogue.errors import DanglingNodeError, DialogueConfigurationError
from vnframework.dialogue.graph import DialogueGraph
from vnframework.dialogue.nodes.base import BaseNode, NodeKind
from vnframework.dialogue.nodes.dialogue import DialogueNode
from vnframework.dialogue.nodes.presentation import PresentationNode
from vnframework.dialogue.persistence import CompletionStore, MemoryCompletionStore
from vnframework.dialogue.presenter import DialoguePresenter
from vnframework.dialogue.validation import repair_graph

logger = logging.getLogger(__name__)

# Kinds that advance without player input
SILENT_KINDS = (NodeKind.CONDITION, NodeKind.EVENT)


class RunnerState(Enum):
    IDLE = auto()
    ACTIVE = auto()


class DialogueRunner:
    """
    Traversal engine for one dialogue graph.

    Handles:
    - Starting and ending a conversation
    - Advancing on player input (next, option, item)
    - Chaining through silent condition/event nodes
    - One-time completion records
    - Dispatching option side effects to the effect player
    """

    def __init__(
        self,
        graph: DialogueGraph,
        completion_store: Optional[CompletionStore] = None,
        game_state: Optional[GameStateBackend] = None,
        effects: Optional[EffectPlayer] = None,
        events: Optional[EventBus] = None,
        config: Optional[DialogueConfig] = None,
    ):
        self.graph = graph
        self.config = config or DialogueConfig()
        self.completion_store = completion_store or MemoryCompletionStore(
            key_prefix=self.config.completion_key_prefix
        )
        self._game_state = game_state
        self._effects = effects
        self.events = events

        self._presenter: Optional[DialoguePresenter] = None
        self._silent_hops = 0
        self._from_timeline = False
        self._on_dialogue_end: Optional[Callable[[], None]] = None

        if self.config.reset_one_time_on_start:
            self.reset_one_time_dialogues()

    # --- State ---

    @property
    def state(self) -> RunnerState:
        return RunnerState.ACTIVE if self.is_active else RunnerState.IDLE

    @property
    def is_active(self) -> bool:
        """True while this runner drives its graph."""
        return self.graph.active and self._presenter is not None

    @property
    def presenter(self) -> Optional[DialoguePresenter]:
        return self._presenter

    @property
    def current_node(self) -> Optional[BaseNode]:
        return self.graph.current_node

    @property
    def game_state(self) -> Optional[GameStateBackend]:
        return self._game_state

    @property
    def effects(self) -> Optional[EffectPlayer]:
        return self._effects

    # --- Lifecycle ---

    def start_dialogue(self, presenter: Optional[DialoguePresenter], from_timeline: bool = False) -> bool:
        """
        Start the conversation at the graph's start node.

        Args:
            presenter: UI to drive
            from_timeline: Started by a paused cinematic; the effect player
                resumes it when the dialogue ends

        Returns:
            False if the dialogue could not start (see log for the reason)

        Raises:
            DialogueConfigurationError: misconfigured graph with config.strict set
        """
        start = self._check_can_start(presenter)
        if start is None:
            return False

        self._activate(presenter, start, from_timeline)
        logger.info(f"Started dialogue {self.graph.name!r} at {start}")
        self._publish(DialogueEvent.STARTED, node=start)
        self.process_current_node()
        return True

    def prepare_dialogue(self, presenter: Optional[DialoguePresenter], from_timeline: bool = False) -> bool:
        """
        Activate and place the cursor on the start node without presenting it.

        The caller shows the first node later with process_current_node().
        """
        start = self._check_can_start(presenter)
        if start is None:
            return False

        self._activate(presenter, start, from_timeline)
        logger.info(f"Prepared dialogue {self.graph.name!r} at {start}")
        self._publish(DialogueEvent.STARTED, node=start)
        return True

    def resume(self, presenter: Optional[DialoguePresenter], node_id: Optional[str] = None) -> bool:
        """
        Re-present a node, e.g. after the UI was rebuilt by a scene change.

        Args:
            presenter: The (new) presenter to drive
            node_id: Node to resume at; defaults to the current cursor
        """
        if presenter is None:
            logger.error(f"Cannot resume dialogue {self.graph.name!r}: no presenter")
            return False

        if self.graph.active and not self.is_active:
            logger.warning(f"Dialogue {self.graph.name!r} is driven by another runner, not resuming")
            return False

        node = self.graph.get_node(node_id or self.graph.current_node_id)
        if node is None:
            logger.error(f"Cannot resume dialogue {self.graph.name!r}: node {node_id!r} not found")
            return False

        self._presenter = presenter
        self.graph.active = True
        self.graph.move_cursor(node)
        self._silent_hops = 0
        logger.info(f"Resumed dialogue {self.graph.name!r} at {node}")
        self.process_current_node()
        return True

    def end_dialogue(self) -> None:
        """End the conversation. Calling it while idle does nothing."""
        if not self.is_active:
            return

        self.graph.active = False
        self.graph.clear_cursor()
        self._silent_hops = 0

        presenter = self._presenter
        self._presenter = None
        from_timeline = self._from_timeline
        self._from_timeline = False

        logger.info(f"Ended dialogue {self.graph.name!r}")
        presenter.on_dialogue_ended()
        if from_timeline:
            self.resume_timeline()
        self._publish(DialogueEvent.ENDED)

        if self._on_dialogue_end:
            self._on_dialogue_end()

    def on_dialogue_end(self, callback: Optional[Callable[[], None]]) -> None:
        """Set callback for when the dialogue ends."""
        self._on_dialogue_end = callback

    def _check_can_start(self, presenter: Optional[DialoguePresenter]) -> Optional[BaseNode]:
        if presenter is None:
            self._misconfigured("no presenter")
            return None

        if self.graph.active:
            logger.warning(f"Dialogue {self.graph.name!r} is already running, ignoring start")
            return None

        if self.graph.start_node is None:
            self._misconfigured("no start node set")
            return None

        start = self.graph.get_node(self.graph.start_node)
        if start is None:
            self._misconfigured(f"start node {self.graph.start_node!r} is not in the graph")
            return None

        if start.tracks_completion() and self.is_dialogue_completed(start):
            logger.info(f"One-time dialogue {start} in {self.graph.name!r} already completed")
            return None

        return start

    def _misconfigured(self, reason: str) -> None:
        message = f"Cannot start dialogue {self.graph.name!r}: {reason}"
        if self.config.strict:
            raise DialogueConfigurationError(message)
        logger.error(message)

    def _activate(self, presenter: DialoguePresenter, start: BaseNode, from_timeline: bool) -> None:
        if self.config.repair_on_start:
            repair_graph(self.graph)

        self._from_timeline = from_timeline
        self._presenter = presenter
        self._silent_hops = 0
        self.graph.active = True
        self.graph.move_cursor(start)

    # --- Traversal ---

    def process_current_node(self) -> None:
        """Present the node under the cursor."""
        if not self.is_active:
            return

        node = self._current()
        if node is None:
            self.end_dialogue()
            return

        logger.debug(f"Processing {node}")
        self._presenter.set_end_node_flag(node.is_end_node())
        self._publish(DialogueEvent.NODE_ENTERED, node=node)
        node.process(self._presenter, self)

        if node.tracks_completion():
            self.mark_dialogue_completed(node)

    def process_next_node(self) -> None:
        """Move the cursor to the current node's successor and present it."""
        if not self.is_active:
            return

        node = self._current()
        if node is None:
            self.end_dialogue()
            return

        next_id = node.get_next_node()
        if next_id is None:
            logger.debug(f"{node} has no successor, ending dialogue")
            self.end_dialogue()
            return

        if next_id == node.id and node.is_pending:
            logger.debug(f"{node} is waiting for input")
            return

        next_node = self.graph.get_node(next_id)
        if next_node is None:
            logger.error(
                f"{node} in {self.graph.name!r} points at missing node {next_id!r}, aborting dialogue"
            )
            self.end_dialogue()
            return

        if next_node.tracks_completion() and self.is_dialogue_completed(next_node):
            logger.info(f"One-time dialogue {next_node} already completed, ending dialogue")
            self.end_dialogue()
            return

        if next_node.kind in SILENT_KINDS:
            self._silent_hops += 1
            if self._silent_hops > self.config.max_silent_hops:
                logger.error(
                    f"More than {self.config.max_silent_hops} condition/event nodes in a row "
                    f"in {self.graph.name!r}, assuming a cycle and aborting dialogue"
                )
                self.end_dialogue()
                return
        else:
            self._silent_hops = 0

        self.graph.move_cursor(next_node)
        self.process_current_node()

    def next(self) -> None:
        """Advance a linear line (the player clicked through it)."""
        if not self.is_active:
            return

        node = self._current()
        if node is None:
            self.end_dialogue()
            return

        if node.is_end_node():
            self.end_dialogue()
            return

        if isinstance(node, DialogueNode) and node.is_choice:
            logger.debug(f"{node} expects an option, ignoring next()")
            return

        self.process_next_node()

    # --- Player input ---

    def select_option(self, index: int, node: Optional[BaseNode] = None) -> None:
        """
        Pick an option on the current choice node.

        Args:
            index: Option index
            node: Node the callback was issued for; stale callbacks are ignored
        """
        current = self._input_target(node)
        if current is None:
            return

        if not isinstance(current, DialogueNode) or not current.is_choice:
            logger.warning(f"Option {index} selected but {current} is not a choice node")
            return

        self._publish(DialogueEvent.OPTION_SELECTED, node=current, index=index)
        current.choose(index, self)

    def present_item(self, item_id: Optional[str], node: Optional[BaseNode] = None) -> None:
        """
        Present an item on the current presentation node.

        Args:
            item_id: Presented item, or None to take the default output
            node: Node the callback was issued for; stale callbacks are ignored
        """
        current = self._input_target(node)
        if current is None:
            return

        if not isinstance(current, PresentationNode):
            logger.warning(f"Item {item_id!r} presented but {current} is not a presentation node")
            return

        if not current.receive_item(item_id):
            return

        self._presenter.disable_item_presentation()
        self._publish(DialogueEvent.ITEM_PRESENTED, node=current, item_id=item_id)
        self.process_next_node()

    def effect_completed(self) -> bool:
        """
        Report that the timeline or animation the current node waits on finished.

        Returns:
            True if a waiting node resumed
        """
        if not self.is_active:
            return False

        node = self._current()
        if node is None:
            return False

        resumed = node.on_effect_completed(self)
        if not resumed:
            logger.debug(f"effect_completed() but {node} was not waiting on an effect")
        return resumed

    def _input_target(self, node: Optional[BaseNode]) -> Optional[BaseNode]:
        if not self.is_active:
            logger.debug(f"Input for {self.graph.name!r} ignored, dialogue is not running")
            return None

        current = self._current()
        if current is None:
            return None

        if node is not None and node is not current:
            logger.debug(f"Ignoring input for {node}, current node is {current}")
            return None

        return current

    def _current(self) -> Optional[BaseNode]:
        try:
            return self.graph.current_node
        except DanglingNodeError as e:
            logger.error(f"Dialogue {self.graph.name!r} lost its current node: {e}")
            self.end_dialogue()
            raise

    # --- Effects ---

    def shake_camera(self, level: ShakeLevel) -> None:
        if self._effects is None:
            logger.debug(f"No effect player, skipping {level.name} camera shake")
            return
        try:
            self._effects.shake_camera(level)
        except Exception as e:
            logger.warning(f"Camera shake failed: {e}")

    def play_voice(self, voice_ref: str) -> None:
        if self._effects is None:
            logger.debug(f"No effect player, skipping voice {voice_ref}")
            return
        try:
            self._effects.play_voice(voice_ref)
        except Exception as e:
            logger.warning(f"Voice {voice_ref} failed: {e}")

    def play_timeline(self, timeline_id: str) -> bool:
        """Returns True if the timeline started playing."""
        if self._effects is None:
            logger.warning(f"No effect player, cannot play timeline {timeline_id}")
            return False
        try:
            return bool(self._effects.play_timeline(timeline_id))
        except Exception as e:
            logger.warning(f"Timeline {timeline_id} failed: {e}")
            return False

    def play_animation(self, anim_type: AnimType, anim_name: str) -> bool:
        """Returns True if the animation started playing."""
        if self._effects is None:
            logger.warning(f"No effect player, cannot play animation {anim_name or anim_type.name}")
            return False
        try:
            return bool(self._effects.play_animation(anim_type, anim_name))
        except Exception as e:
            logger.warning(f"Animation {anim_name or anim_type.name} failed: {e}")
            return False

    def resume_timeline(self) -> None:
        if self._effects is None:
            logger.debug("No effect player, not resuming a timeline")
            return
        try:
            self._effects.resume_timeline()
        except Exception as e:
            logger.warning(f"Resuming timeline failed: {e}")

    # --- One-time completion ---

    def is_dialogue_completed(self, node: BaseNode) -> bool:
        if not self.config.save_completed_dialogues:
            return False
        try:
            return self.completion_store.is_complete(self.graph.name, node.display_name, node.id)
        except Exception as e:
            logger.warning(f"Could not read completion of {node}: {e}")
            return False

    def mark_dialogue_completed(self, node: BaseNode) -> None:
        if not self.config.save_completed_dialogues:
            return
        if self.is_dialogue_completed(node):
            return
        try:
            self.completion_store.mark_complete(self.graph.name, node.display_name, node.id)
        except Exception as e:
            logger.warning(f"Could not record completion of {node}: {e}")
            return
        logger.info(f"Marked one-time dialogue {node} in {self.graph.name!r} as completed")
        self._publish(DialogueEvent.NODE_COMPLETED, node=node)

    def reset_node(self, node: BaseNode) -> bool:
        """Forget the completion record of one node."""
        try:
            return self.completion_store.reset(self.graph.name, node.display_name, node.id)
        except Exception as e:
            logger.warning(f"Could not reset completion of {node}: {e}")
            return False

    def reset_one_time_dialogues(self) -> int:
        """
        Forget every one-time completion record of the graph.

        Returns:
            Number of records removed
        """
        count = sum(1 for node in self.graph.one_time_nodes() if self.reset_node(node))
        logger.info(f"Reset {count} one-time dialogues in {self.graph.name!r}")
        return count

    def _publish(self, event_type: DialogueEvent, **data: Any) -> None:
        if self.events is not None:
            self.events.publish(event_type, graph=self.graph.name, **data)
