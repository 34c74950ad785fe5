"""
Base node - the abstract unit of a dialogue graph.

Every node variant answers three questions for the runner:
- process(): what happens when the cursor lands here
- get_next_node(): where the cursor goes next, from already-resolved state
- is_end_node(): whether the conversation stops here
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from pydantic import Field

from vnengine.core.component import NodeModel

if TYPE_CHECKING:
    from vnframework.dialogue.presenter import DialoguePresenter
    from vnframework.dialogue.runner import DialogueRunner


# Edges are node ids resolved through the owning graph
NodeRef = Optional[str]


class NodeKind(Enum):
    """Node variant tag."""
    DIALOGUE = "dialogue"
    CONDITION = "condition"
    EVENT = "event"
    PRESENTATION = "presentation"


class Actor(NodeModel):
    """
    A speaker shown next to dialogue text.

    Attributes:
        id: Actor identifier
        name: Display name in the dialogue box
        portrait: Portrait asset ID
    """
    id: str = ""
    name: str = ""
    portrait: Optional[str] = None


def preview(text: str, length: int) -> str:
    """Shorten text for node labels."""
    if not text:
        return ""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def speaker_label(speaker: Optional[Actor]) -> str:
    if speaker is None:
        return "Narrator"
    return speaker.name or speaker.id or "Unknown"


class BaseNode(NodeModel, ABC):
    """
    Base class for all dialogue node types.

    Attributes:
        id: Stable identifier, unique in its graph
        name: Authored name; a label is derived when empty
    """

    kind: ClassVar[NodeKind]

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = ""

    @property
    def display_name(self) -> str:
        """Name shown in logs and used in completion keys."""
        return self.name or self.default_name()

    def default_name(self) -> str:
        """Label derived from the node's content."""
        return self.kind.value

    @abstractmethod
    def process(self, presenter: DialoguePresenter, runner: DialogueRunner) -> None:
        """Show the node or run its effect. Never moves the cursor directly."""

    @abstractmethod
    def get_next_node(self) -> NodeRef:
        """Successor id from resolved state; None ends the dialogue."""

    @abstractmethod
    def outgoing(self) -> list[tuple[str, NodeRef]]:
        """Labelled outgoing edges, including unconnected ones."""

    def is_end_node(self) -> bool:
        """Whether the conversation stops at this node."""
        return False

    def tracks_completion(self) -> bool:
        """Whether visiting this node writes a one-time completion record."""
        return False

    @property
    def is_pending(self) -> bool:
        """True while the node waits for input that get_next_node depends on."""
        return False

    def reset_runtime_state(self) -> None:
        """Clear selection state left over from a previous visit."""

    def on_effect_completed(self, runner: DialogueRunner) -> bool:
        """
        Resume after an external effect finished.

        Returns:
            True if the node was waiting on an effect
        """
        return False

    def connected_targets(self) -> list[str]:
        return [target for _, target in self.outgoing() if target]

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.display_name!r})"
