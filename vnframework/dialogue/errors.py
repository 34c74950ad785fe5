"""
Dialogue error taxonomy.

Configuration errors are logged by the runner and turned into an abort to
idle, or raised as DialogueConfigurationError when the runner is strict.
DanglingNodeError is the one fatal error: it means the cursor was about
to leave the graph that owns it.
"""

from __future__ import annotations


class DialogueError(Exception):
    """Base class for dialogue engine errors."""


class DialogueConfigurationError(DialogueError):
    """Authoring problem: missing start node, presenter or connection."""


class DanglingNodeError(DialogueError):
    """A node reference points outside the owning graph."""

    def __init__(self, graph_name: str, node_id: str | None):
        super().__init__(f"Node {node_id!r} is not part of graph {graph_name!r}")
        self.graph_name = graph_name
        self.node_id = node_id


class GraphLoadError(DialogueError):
    """Graph data could not be parsed or failed validation."""
