"""
Event node - silent side effect (give item, play sound, quest update).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, ClassVar, Optional

from pydantic import Field, PrivateAttr

from vnengine.core.component import register_node
from vnframework.dialogue.backends import GameStateBackend, QuestAction
from vnframework.dialogue.nodes.base import BaseNode, NodeKind, NodeRef

if TYPE_CHECKING:
    from vnframework.dialogue.presenter import DialoguePresenter
    from vnframework.dialogue.runner import DialogueRunner

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Side effect performed by an event node."""
    NONE = "none"
    GIVE_ITEM = "give_item"
    PLAY_SOUND = "play_sound"
    QUEST_ACTION = "quest_action"
    CUSTOM = "custom"           # Injected callable


@register_node
class EventNode(BaseNode):
    """
    Runs one side effect, then advances on its own.

    With is_end_event set, the dialogue ends right after the effect.
    """

    _type_name: ClassVar[str] = "event"
    kind: ClassVar[NodeKind] = NodeKind.EVENT

    event_type: EventType = EventType.NONE

    # GIVE_ITEM
    item_id: str = ""
    # PLAY_SOUND
    sound_ref: str = ""
    volume: float = Field(default=1.0, ge=0.0, le=1.0)
    # QUEST_ACTION
    quest_action: QuestAction = QuestAction.COMPLETE_OBJECTIVE
    quest_id: str = ""
    objective_id: str = ""

    next_node: NodeRef = None
    is_end_event: bool = False

    _custom_action: Optional[Callable[[], None]] = PrivateAttr(default=None)
    _executed: bool = PrivateAttr(default=False)

    @property
    def executed(self) -> bool:
        return self._executed

    def set_custom_action(self, callback: Optional[Callable[[], None]]) -> None:
        """Inject the callable run by CUSTOM events."""
        self._custom_action = callback

    def default_name(self) -> str:
        if self.event_type == EventType.GIVE_ITEM:
            return f"Event_give_{self.item_id or 'item'}"
        if self.event_type == EventType.PLAY_SOUND:
            return f"Event_play_{self.sound_ref or 'sound'}"
        if self.event_type == EventType.QUEST_ACTION:
            target = self.objective_id if self.quest_action == QuestAction.COMPLETE_OBJECTIVE else self.quest_id
            return f"Event_{self.quest_action.name.lower()}_{target}"
        if self.event_type == EventType.CUSTOM:
            return "Event_custom"
        return "Event"

    def reset_runtime_state(self) -> None:
        self._executed = False

    def execute(self, state: Optional[GameStateBackend]) -> None:
        """Perform the side effect. Failures are logged and swallowed."""
        logger.debug(f"Executing {self.event_type.name} for {self}")
        try:
            self._execute(state)
        except Exception as e:
            logger.warning(f"{self} failed, continuing dialogue: {e}")
        self._executed = True

    def _execute(self, state: Optional[GameStateBackend]) -> None:
        if self.event_type == EventType.NONE:
            return

        if self.event_type == EventType.CUSTOM:
            if self._custom_action is None:
                logger.warning(f"{self} has no custom action set")
                return
            self._custom_action()
            return

        if state is None:
            logger.warning(f"{self} needs game state but no backend is available")
            return

        if self.event_type == EventType.GIVE_ITEM:
            if not self.item_id:
                logger.warning(f"{self} has no item to give")
                return
            added = state.give_item(self.item_id)
            logger.info(f"Gave item {self.item_id}: {'ok' if added else 'rejected'}")

        elif self.event_type == EventType.PLAY_SOUND:
            if not self.sound_ref:
                logger.warning(f"{self} has no sound to play")
                return
            state.play_sound(self.sound_ref, self.volume)

        elif self.event_type == EventType.QUEST_ACTION:
            if self.quest_action == QuestAction.COMPLETE_OBJECTIVE:
                if not self.objective_id:
                    logger.warning(f"{self} has no objective id")
                    return
            elif not self.quest_id:
                logger.warning(f"{self} has no quest id")
                return
            state.quest_action(self.quest_action, self.quest_id, self.objective_id)

    def process(self, presenter: DialoguePresenter, runner: DialogueRunner) -> None:
        self.execute(runner.game_state)
        runner.process_next_node()

    def get_next_node(self) -> NodeRef:
        if self.is_end_event:
            return None
        return self.next_node

    def is_end_node(self) -> bool:
        return self.is_end_event

    def outgoing(self) -> list[tuple[str, NodeRef]]:
        return [("next", self.next_node)]
