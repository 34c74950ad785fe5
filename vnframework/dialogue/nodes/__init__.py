"""
Dialogue node types.

Importing this package registers every node type for deserialization.
"""

from vnframework.dialogue.nodes.base import Actor, BaseNode, NodeKind, NodeRef
from vnframework.dialogue.nodes.dialogue import (
    DialogueNode,
    DialogueMode,
    OptionEntry,
    OptionEffects,
    PendingEffect,
    OPTION_LIST_DEFAULTS,
)
from vnframework.dialogue.nodes.condition import ConditionNode, ConditionType, CompareOperator
from vnframework.dialogue.nodes.event import EventNode, EventType
from vnframework.dialogue.nodes.presentation import PresentationNode, ItemReaction

__all__ = [
    "Actor",
    "BaseNode",
    "NodeKind",
    "NodeRef",
    "DialogueNode",
    "DialogueMode",
    "OptionEntry",
    "OptionEffects",
    "PendingEffect",
    "OPTION_LIST_DEFAULTS",
    "ConditionNode",
    "ConditionType",
    "CompareOperator",
    "EventNode",
    "EventType",
    "PresentationNode",
    "ItemReaction",
]
