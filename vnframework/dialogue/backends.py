"""
Backend contracts consumed by condition, event and choice nodes.

The dialogue engine never owns inventory, quest, flag or audio state.
Collaborators are injected into the runner; a missing or failing backend
reads as "condition is false" or "event does nothing".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class QuestStatus(Enum):
    """Quest status as seen by dialogue conditions."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class QuestAction(Enum):
    """Quest mutations an event node can request."""
    COMPLETE_OBJECTIVE = "complete_objective"
    ACCEPT_QUEST = "accept_quest"
    COMPLETE_QUEST = "complete_quest"
    FAIL_QUEST = "fail_quest"


class ShakeLevel(Enum):
    """Camera shake intensity."""
    LIGHT = "light"
    MEDIUM = "medium"
    STRONG = "strong"
    OBJECTION = "objection"   # Courtroom-style hard shake


class AnimType(Enum):
    """UI animation played after an option is chosen."""
    NONE = "none"
    FADE = "fade"
    SLIDE = "slide"
    POPUP = "popup"
    PANEL = "panel"       # Named animation panel


class GameStateBackend(ABC):
    """
    Lookups and commands against game state.

    Implemented by the game; MemoryGameState is a self-contained version.
    """

    @abstractmethod
    def has_item(self, item_id: str) -> bool:
        """Check if the player holds an item."""

    @abstractmethod
    def get_flag(self, name: str) -> bool:
        """Get a boolean story flag (unset flags read as False)."""

    @abstractmethod
    def get_numeric_variable(self, name: str) -> float:
        """Get a numeric variable (unset variables read as 0)."""

    @abstractmethod
    def get_quest_status(self, quest_id: str) -> QuestStatus:
        """Get the status of a quest."""

    @abstractmethod
    def give_item(self, item_id: str) -> bool:
        """Add an item to the player's inventory."""

    @abstractmethod
    def play_sound(self, sound_ref: str, volume: float = 1.0) -> None:
        """Play a one-shot sound effect."""

    @abstractmethod
    def quest_action(
        self,
        action: QuestAction,
        quest_id: str = "",
        objective_id: str = "",
    ) -> None:
        """Apply a quest mutation."""


class EffectPlayer(ABC):
    """
    Presentation side effects triggered by dialogue and choice nodes.

    play_timeline and play_animation return True when playback started;
    the runner then waits for effect_completed() before advancing.
    """

    @abstractmethod
    def play_timeline(self, timeline_id: str) -> bool:
        """Start a cinematic timeline."""

    @abstractmethod
    def shake_camera(self, level: ShakeLevel) -> None:
        """Shake the camera."""

    @abstractmethod
    def play_animation(self, anim_type: AnimType, anim_name: str) -> bool:
        """Play a UI animation."""

    @abstractmethod
    def play_voice(self, voice_ref: str) -> None:
        """Play a voice line."""

    def resume_timeline(self) -> None:
        """
        Resume the cinematic a dialogue was started from.

        Called when such a dialogue ends. Override if dialogue can be
        started from a paused timeline.
        """
        pass


class MemoryGameState(GameStateBackend):
    """
    In-memory game state.

    Useful for tools, demos and tests; the shipped game backs these
    lookups with its inventory, quest log and save flags.
    """

    def __init__(self):
        self.items: dict[str, int] = {}
        self.flags: dict[str, bool] = {}
        self.variables: dict[str, float] = {}
        self.quests: dict[str, QuestStatus] = {}
        self.completed_objectives: set[str] = set()
        self.played_sounds: list[tuple[str, float]] = []

    def has_item(self, item_id: str) -> bool:
        return self.items.get(item_id, 0) > 0

    def get_flag(self, name: str) -> bool:
        return self.flags.get(name, False)

    def set_flag(self, name: str, value: bool = True) -> None:
        self.flags[name] = value

    def get_numeric_variable(self, name: str) -> float:
        return self.variables.get(name, 0.0)

    def set_variable(self, name: str, value: float) -> None:
        self.variables[name] = value

    def get_quest_status(self, quest_id: str) -> QuestStatus:
        return self.quests.get(quest_id, QuestStatus.NOT_STARTED)

    def give_item(self, item_id: str) -> bool:
        self.items[item_id] = self.items.get(item_id, 0) + 1
        return True

    def play_sound(self, sound_ref: str, volume: float = 1.0) -> None:
        self.played_sounds.append((sound_ref, volume))

    def quest_action(
        self,
        action: QuestAction,
        quest_id: str = "",
        objective_id: str = "",
    ) -> None:
        if action == QuestAction.COMPLETE_OBJECTIVE:
            if objective_id:
                self.completed_objectives.add(objective_id)
        elif action == QuestAction.ACCEPT_QUEST:
            self.quests[quest_id] = QuestStatus.IN_PROGRESS
        elif action == QuestAction.COMPLETE_QUEST:
            self.quests[quest_id] = QuestStatus.COMPLETED
        elif action == QuestAction.FAIL_QUEST:
            self.quests[quest_id] = QuestStatus.FAILED
