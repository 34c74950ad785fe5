"""
Model base class for graph data.

Nodes, actors and other authored dialogue data are pydantic models.
Runtime-only state (selected option, presented item) lives in private
attributes so it never ends up in serialized graphs.

Usage:
    @register_node
    class NoteNode(NodeModel):
        _type_name: ClassVar[str] = "note"
        text: str = ""
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class NodeModel(BaseModel):
    """
    Base class for serializable graph data.

    Uses pydantic for:
    - Validation of authored data
    - JSON round trips
    - Defaults for optional fields
    """

    model_config = ConfigDict(
        # Actors and callbacks are plain objects
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='forbid',
    )

    # Type tag written to the "type" key of serialized data
    _type_name: ClassVar[str] = ""

    @classmethod
    def get_type_name(cls) -> str:
        """Get the type tag used for serialization."""
        return cls._type_name or cls.__name__

    def clone(self) -> NodeModel:
        """Create a deep copy of this model."""
        return self.model_copy(deep=True)


# Registry of node types for deserialization
_node_registry: dict[str, type[NodeModel]] = {}


def register_node(cls: type[NodeModel]) -> type[NodeModel]:
    """
    Decorator to register a node type under its type tag.

    Usage:
        @register_node
        class DialogueNode(BaseNode):
            _type_name: ClassVar[str] = "dialogue"
    """
    _node_registry[cls.get_type_name()] = cls
    return cls


def get_node_type(type_name: str) -> type[NodeModel] | None:
    """Get node class by type tag."""
    return _node_registry.get(type_name)


def get_all_node_types() -> dict[str, type[NodeModel]]:
    """Get all registered node types."""
    return _node_registry.copy()
