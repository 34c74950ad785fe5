"""
Core engine module.

Exports:
- NodeModel, register_node, get_node_type: Model base and type registry
- EventBus, Event, DialogueEvent: Event system
"""

from vnengine.core.component import (
    NodeModel,
    register_node,
    get_node_type,
    get_all_node_types,
)
from vnengine.core.events import EventBus, Event, DialogueEvent

__all__ = [
    # Models
    "NodeModel",
    "register_node",
    "get_node_type",
    "get_all_node_types",
    # Events
    "EventBus",
    "Event",
    "DialogueEvent",
]
