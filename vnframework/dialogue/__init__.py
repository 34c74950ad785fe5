"""
Dialogue module - node-graph conversations for adventure scenes.

Provides:
- Node types (dialogue, condition, event, presentation)
- Graph traversal with player choices and item presentation
- One-time dialogue completion records
- Graph loading, validation and repair
- Continuity across scene changes
- Ordered dialogue sequences per speaker
"""

from vnframework.dialogue.nodes import (
    Actor,
    BaseNode,
    NodeKind,
    DialogueNode,
    DialogueMode,
    ConditionNode,
    ConditionType,
    CompareOperator,
    EventNode,
    EventType,
    PresentationNode,
    ItemReaction,
)
from vnframework.dialogue.backends import (
    AnimType,
    EffectPlayer,
    GameStateBackend,
    MemoryGameState,
    QuestAction,
    QuestStatus,
    ShakeLevel,
)
from vnframework.dialogue.config import DialogueConfig
from vnframework.dialogue.errors import (
    DialogueError,
    DialogueConfigurationError,
    DanglingNodeError,
    GraphLoadError,
)
from vnframework.dialogue.graph import DialogueGraph, ensure_unique_name
from vnframework.dialogue.presenter import DialoguePresenter, NullPresenter
from vnframework.dialogue.persistence import (
    CompletionStore,
    MemoryCompletionStore,
    JsonCompletionStore,
    ProgressStore,
    MemoryProgressStore,
    JsonProgressStore,
)
from vnframework.dialogue.runner import DialogueRunner, RunnerState
from vnframework.dialogue.validation import (
    ValidationReport,
    repair_choice_options,
    repair_graph,
    validate_graph,
)
from vnframework.dialogue.loader import (
    graph_from_dict,
    graph_to_dict,
    load_graph_file,
    load_graph_directory,
    save_graph_file,
)
from vnframework.dialogue.continuity import DialogueContinuity, DialogueSnapshot
from vnframework.dialogue.sequence import DialogueSequence

__all__ = [
    # Nodes
    "Actor",
    "BaseNode",
    "NodeKind",
    "DialogueNode",
    "DialogueMode",
    "ConditionNode",
    "ConditionType",
    "CompareOperator",
    "EventNode",
    "EventType",
    "PresentationNode",
    "ItemReaction",
    # Backends
    "AnimType",
    "EffectPlayer",
    "GameStateBackend",
    "MemoryGameState",
    "QuestAction",
    "QuestStatus",
    "ShakeLevel",
    # Runtime
    "DialogueConfig",
    "DialogueGraph",
    "ensure_unique_name",
    "DialoguePresenter",
    "NullPresenter",
    "CompletionStore",
    "MemoryCompletionStore",
    "JsonCompletionStore",
    "ProgressStore",
    "MemoryProgressStore",
    "JsonProgressStore",
    "DialogueRunner",
    "RunnerState",
    "DialogueContinuity",
    "DialogueSnapshot",
    "DialogueSequence",
    # Errors
    "DialogueError",
    "DialogueConfigurationError",
    "DanglingNodeError",
    "GraphLoadError",
    # Data
    "ValidationReport",
    "repair_choice_options",
    "repair_graph",
    "validate_graph",
    "graph_from_dict",
    "graph_to_dict",
    "load_graph_file",
    "load_graph_directory",
    "save_graph_file",
]
