"""
Presenter contract - what the runner asks of the UI layer.

The runner never renders anything. It calls these methods and returns
control; the UI calls back through on_selected / on_item_chosen (or the
runner's own re-entry methods) when the player acts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional, Sequence

if TYPE_CHECKING:
    from vnframework.dialogue.nodes.base import Actor


OptionCallback = Callable[[int], None]
ItemCallback = Callable[[Optional[str]], None]


class DialoguePresenter(ABC):
    """
    UI layer driven by a DialogueRunner.

    Implementations are expected to be cheap and non-blocking: show the
    content, remember the callback, return.
    """

    @abstractmethod
    def show_dialogue(self, speaker: Optional[Actor], text: str) -> None:
        """Show a line of dialogue (speaker None = narrator)."""

    @abstractmethod
    def show_options(self, labels: Sequence[str], on_selected: OptionCallback) -> None:
        """Show choice buttons; call on_selected(index) when one is picked."""

    @abstractmethod
    def hide_options(self) -> None:
        """Hide any visible choice buttons."""

    @abstractmethod
    def set_end_node_flag(self, is_end: bool) -> None:
        """Mark whether the visible node ends the conversation."""

    @abstractmethod
    def enable_item_presentation(self, on_item_chosen: ItemCallback) -> None:
        """Let the player pick an item to present."""

    @abstractmethod
    def disable_item_presentation(self) -> None:
        """Stop accepting presented items."""

    @abstractmethod
    def on_dialogue_ended(self) -> None:
        """Conversation is over; hide the dialogue UI."""


class NullPresenter(DialoguePresenter):
    """Presenter that ignores every call. Subclass and override what you need."""

    def show_dialogue(self, speaker: Optional[Actor], text: str) -> None:
        pass

    def show_options(self, labels: Sequence[str], on_selected: OptionCallback) -> None:
        pass

    def hide_options(self) -> None:
        pass

    def set_end_node_flag(self, is_end: bool) -> None:
        pass

    def enable_item_presentation(self, on_item_chosen: ItemCallback) -> None:
        pass

    def disable_item_presentation(self) -> None:
        pass

    def on_dialogue_ended(self) -> None:
        pass
