"""
Presentation node - the player answers by presenting an item.

While no item has been presented the node points at itself, which the
runner reads as "still waiting" instead of "dialogue over".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar, Optional

from pydantic import Field, PrivateAttr

from vnengine.core.component import NodeModel, register_node
from vnframework.dialogue.nodes.base import (
    Actor,
    BaseNode,
    NodeKind,
    NodeRef,
    preview,
    speaker_label,
)

if TYPE_CHECKING:
    from vnframework.dialogue.presenter import DialoguePresenter
    from vnframework.dialogue.runner import DialogueRunner

logger = logging.getLogger(__name__)


class ItemReaction(NodeModel):
    """Maps a presented item to the node that reacts to it."""
    item_id: str
    target: NodeRef = None


@register_node
class PresentationNode(BaseNode):
    """
    Shows a line and waits for an item.

    Attributes:
        speaker: Speaking actor (None = narrator)
        text: Prompt shown while waiting
        reactions: Item reactions; the first one matching the item id decides
        default_output: Used when nothing matches or no item is presented
        is_one_time: Record completion on first visit
        is_end: Explicit end-of-conversation marker
    """

    _type_name: ClassVar[str] = "presentation"
    kind: ClassVar[NodeKind] = NodeKind.PRESENTATION

    speaker: Optional[Actor] = None
    text: str = ""
    reactions: list[ItemReaction] = Field(default_factory=list)
    default_output: NodeRef = None
    is_one_time: bool = False
    is_end: bool = False

    _resolved: bool = PrivateAttr(default=False)
    _presented_item: Optional[str] = PrivateAttr(default=None)

    @property
    def is_pending(self) -> bool:
        return not self._resolved

    @property
    def presented_item(self) -> Optional[str]:
        return self._presented_item

    def add_reaction(self, item_id: str, target: NodeRef) -> ItemReaction:
        reaction = ItemReaction(item_id=item_id, target=target)
        self.reactions = [*self.reactions, reaction]
        return reaction

    def find_reaction(self, item_id: Optional[str]) -> Optional[ItemReaction]:
        """First reaction registered for the item."""
        if item_id is None:
            return None
        for reaction in self.reactions:
            if reaction.item_id == item_id:
                return reaction
        return None

    def default_name(self) -> str:
        if self.speaker is None and not self.text:
            return "Presentation"
        label = f"{speaker_label(self.speaker)}: {preview(self.text, 15)}"
        if self.reactions:
            label += f" ({len(self.reactions)} reactions)"
        return label

    def tracks_completion(self) -> bool:
        return self.is_one_time

    def reset_runtime_state(self) -> None:
        self._resolved = False
        self._presented_item = None

    def process(self, presenter: DialoguePresenter, runner: DialogueRunner) -> None:
        self.reset_runtime_state()

        presenter.enable_item_presentation(lambda item_id: runner.present_item(item_id, node=self))
        presenter.show_dialogue(self.speaker, self.text)

    def receive_item(self, item_id: Optional[str]) -> bool:
        """
        Resolve the pending presentation.

        Returns:
            False if the node already received an item this visit
        """
        if self._resolved:
            logger.debug(f"{self} already resolved, ignoring item {item_id!r}")
            return False

        self._resolved = True
        self._presented_item = item_id

        if self.find_reaction(item_id) is None:
            logger.debug(f"No reaction to {item_id!r} on {self}, using default output")
        return True

    def get_next_node(self) -> NodeRef:
        if self.is_end:
            return None

        if self.is_pending:
            return self.id

        reaction = self.find_reaction(self._presented_item)
        if reaction is not None and reaction.target is not None:
            return reaction.target

        return self.default_output

    def is_end_node(self) -> bool:
        if self.is_end:
            return True
        return not self.connected_targets()

    def outgoing(self) -> list[tuple[str, NodeRef]]:
        edges: list[tuple[str, NodeRef]] = [("default", self.default_output)]
        edges.extend((f"reaction {r.item_id!r}", r.target) for r in self.reactions)
        return edges
