"""
Dialogue graph - owns the nodes, the start pointer and the runtime cursor.

The cursor is runtime-only and never serialized. Only DialogueRunner moves
it; everything else reads it through the graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from vnframework.dialogue.errors import DanglingNodeError
from vnframework.dialogue.nodes.base import BaseNode, NodeKind

logger = logging.getLogger(__name__)


def ensure_unique_name(graph: DialogueGraph, node: BaseNode, base_name: str) -> str:
    """
    Suffix base_name with 1, 2, 3... until no other node of the same
    kind in the graph uses it.
    """
    if not base_name:
        return "Unnamed node"

    taken = {
        other.display_name
        for other in graph
        if other is not node and other.kind == node.kind
    }
    if base_name not in taken:
        return base_name

    suffix = 1
    while f"{base_name}{suffix}" in taken:
        suffix += 1
    return f"{base_name}{suffix}"


@dataclass
class DialogueGraph:
    """
    A dialogue script: nodes plus a designated start node.

    Attributes:
        name: Graph name (part of one-time completion keys)
        nodes: Node id -> node
        start_node: Id of the node traversal begins at
        description: Free text for authors
    """
    name: str
    nodes: dict[str, BaseNode] = field(default_factory=dict)
    start_node: Optional[str] = None
    description: str = ""

    # Runtime traversal state
    active: bool = field(default=False, init=False, repr=False)
    _current_id: Optional[str] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        nodes = self.nodes
        self.nodes = {}
        for node in nodes.values():
            self.add_node(node)

    def __iter__(self) -> Iterator[BaseNode]:
        return iter(list(self.nodes.values()))

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, item: Union[BaseNode, str]) -> bool:
        if isinstance(item, BaseNode):
            return self.nodes.get(item.id) is item
        return item in self.nodes

    # --- Structure ---

    def add_node(self, node: BaseNode, start: bool = False) -> BaseNode:
        """
        Add a node to the graph.

        Silent nodes without an authored name get a unique derived one.

        Args:
            node: Node to add (must not belong to another graph)
            start: Make it the start node
        """
        if node.id in self.nodes:
            raise ValueError(f"Graph {self.name!r} already has a node with id {node.id!r}")

        if not node.name and node.kind in (NodeKind.CONDITION, NodeKind.EVENT):
            node.name = ensure_unique_name(self, node, node.default_name())

        self.nodes[node.id] = node
        if start:
            self.start_node = node.id
        return node

    def add_nodes(self, *nodes: BaseNode) -> None:
        for node in nodes:
            self.add_node(node)

    def remove_node(self, node_id: str) -> Optional[BaseNode]:
        """Remove a node. Edges pointing at it are left for validation to report."""
        node = self.nodes.pop(node_id, None)
        if node is not None and node_id == self._current_id:
            logger.warning(f"Removed {node} from {self.name!r} while it is the current node")
        if node is not None and self.start_node == node_id:
            self.start_node = None
        return node

    def get_node(self, node_id: Optional[str]) -> Optional[BaseNode]:
        """Get a node by id."""
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def require_node(self, node_id: Optional[str]) -> BaseNode:
        """Get a node by id, raising DanglingNodeError if it is not here."""
        node = self.get_node(node_id)
        if node is None:
            raise DanglingNodeError(self.name, node_id)
        return node

    def find_by_name(self, name: str) -> Optional[BaseNode]:
        for node in self.nodes.values():
            if node.display_name == name:
                return node
        return None

    @property
    def start(self) -> Optional[BaseNode]:
        """The start node, or None if unset or dangling."""
        return self.get_node(self.start_node)

    def one_time_nodes(self) -> list[BaseNode]:
        return [node for node in self.nodes.values() if node.tracks_completion()]

    # --- Cursor ---

    @property
    def current_node(self) -> Optional[BaseNode]:
        """
        The node traversal is at.

        Raises:
            DanglingNodeError: the cursor points at a node no longer in the graph
        """
        if self._current_id is None:
            return None
        return self.require_node(self._current_id)

    @property
    def current_node_id(self) -> Optional[str]:
        return self._current_id

    def move_cursor(self, node: BaseNode) -> None:
        """Point the cursor at one of this graph's nodes."""
        if node not in self:
            raise DanglingNodeError(self.name, node.id)
        self._current_id = node.id

    def clear_cursor(self) -> None:
        self._current_id = None
