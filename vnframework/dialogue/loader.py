"""
Graph (de)serialization.

Graph files are JSON:

    {
        "name": "courtroom",
        "start_node": "d1",
        "actors": {"judge": {"name": "Judge", "portrait": "judge_neutral"}},
        "nodes": [
            {"type": "dialogue", "id": "d1", "speaker": "judge", "text": "Order!",
             "mode": "choice",
             "options": [{"label": "Present evidence", "target": "e1",
                          "shake_enabled": true, "shake_level": "objection"}]},
            {"type": "event", "id": "e1", "event_type": "give_item",
             "item_id": "badge", "next_node": "d2"}
        ]
    }

Speakers are actor ids from the "actors" table (or inline actor objects).
Choice options are objects in files and parallel lists in memory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import jsonschema
from pydantic import ValidationError

from vnengine.core.component import get_node_type
from vnengine.resources.database import DialogueDatabase
from vnframework.dialogue.errors import GraphLoadError
from vnframework.dialogue.graph import DialogueGraph
from vnframework.dialogue.nodes.base import Actor, BaseNode
from vnframework.dialogue.nodes.dialogue import (
    OPTION_EFFECT_FIELDS,
    OPTION_LIST_DEFAULTS,
    DialogueNode,
    OptionEntry,
)

logger = logging.getLogger(__name__)

# Option object key -> in-memory parallel list
_OPTION_KEYS = {"label": "options", "target": "targets"}
_OPTION_KEYS.update({attr: list_name for list_name, attr in OPTION_EFFECT_FIELDS.items()})


def graph_from_dict(data: dict[str, Any]) -> DialogueGraph:
    """
    Build a graph from parsed JSON data.

    Raises:
        GraphLoadError: malformed graph data, unknown node type, unknown
            actor, invalid node fields
    """
    if not isinstance(data, dict):
        raise GraphLoadError(f"Graph data must be an object, got {type(data).__name__}")

    name = data.get("name")
    if not name or not isinstance(name, str):
        raise GraphLoadError("Graph data has no name")

    actors = _parse_actors(name, data.get("actors", {}))
    graph = DialogueGraph(name=name, description=data.get("description", ""))

    nodes = data.get("nodes", [])
    if not isinstance(nodes, list):
        raise GraphLoadError(f"Nodes of {name!r} must be a list, got {type(nodes).__name__}")

    for index, node_data in enumerate(nodes):
        node = _parse_node(name, index, node_data, actors)
        try:
            graph.add_node(node)
        except ValueError as e:
            raise GraphLoadError(str(e)) from e

    graph.start_node = data.get("start_node")
    logger.debug(f"Built graph {name!r} with {len(graph)} nodes")
    return graph


def graph_to_dict(graph: DialogueGraph) -> dict[str, Any]:
    """Serialize a graph to JSON-compatible data. Runtime state is not written."""
    actors: dict[str, dict[str, Any]] = {}
    nodes = [_dump_node(node, actors) for node in graph]

    data: dict[str, Any] = {
        "name": graph.name,
        "start_node": graph.start_node,
        "nodes": nodes,
    }
    if graph.description:
        data["description"] = graph.description
    if actors:
        data["actors"] = actors
    return data


def load_graph_file(path: str | Path, database: Optional[DialogueDatabase] = None) -> DialogueGraph:
    """
    Load a graph from a JSON file, validating it against the graph schema.

    Raises:
        GraphLoadError: file missing, not JSON, or invalid graph data
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise GraphLoadError(f"Cannot read graph file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise GraphLoadError(f"Invalid JSON in {path}: {e}") from e

    database = database or DialogueDatabase(path.parent)
    try:
        database.validate(data)
    except jsonschema.ValidationError as e:
        raise GraphLoadError(f"{path} does not match the graph schema: {e.message}") from e

    graph = graph_from_dict(data)
    logger.info(f"Loaded dialogue graph {graph.name!r} from {path}")
    return graph


def load_graph_directory(path: str | Path) -> dict[str, DialogueGraph]:
    """
    Load every graph file in a directory.

    Files that fail schema validation or node parsing are logged and skipped.

    Returns:
        Graph name -> graph
    """
    database = DialogueDatabase(path)
    database.load_all()

    graphs = {}
    for name in database.graph_names():
        try:
            graphs[name] = graph_from_dict(database.get_graph_data(name))
        except GraphLoadError as e:
            logger.error(f"Skipping dialogue graph {name!r}: {e}")
    return graphs


def save_graph_file(graph: DialogueGraph, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(graph_to_dict(graph), f, indent=2, ensure_ascii=False)
    logger.info(f"Saved dialogue graph {graph.name!r} to {path}")


def _parse_actors(graph_name: str, data: dict[str, Any]) -> dict[str, Actor]:
    if not isinstance(data, dict):
        raise GraphLoadError(f"Actors of {graph_name!r} must be an object, got {type(data).__name__}")

    actors = {}
    for actor_id, actor_data in data.items():
        try:
            actors[actor_id] = Actor(id=actor_id, **actor_data)
        except (TypeError, ValidationError) as e:
            raise GraphLoadError(f"Invalid actor {actor_id!r} in {graph_name!r}: {e}") from e
    return actors


def _parse_node(
    graph_name: str,
    index: int,
    data: dict[str, Any],
    actors: dict[str, Actor],
) -> BaseNode:
    if not isinstance(data, dict):
        raise GraphLoadError(f"Node {index} in {graph_name!r} is not an object")

    fields = dict(data)
    type_name = fields.pop("type", None)
    node_cls = get_node_type(type_name) if type_name else None
    if node_cls is None:
        raise GraphLoadError(f"Node {index} in {graph_name!r} has unknown type {type_name!r}")

    if "speaker" in fields:
        fields["speaker"] = _resolve_speaker(graph_name, fields["speaker"], actors)

    if node_cls is DialogueNode and "options" in fields:
        fields.update(_options_to_lists(graph_name, fields.pop("options")))

    try:
        return node_cls.model_validate(fields)
    except ValidationError as e:
        node_id = data.get("id", index)
        raise GraphLoadError(f"Invalid {type_name} node {node_id!r} in {graph_name!r}: {e}") from e


def _resolve_speaker(graph_name: str, speaker: Any, actors: dict[str, Actor]) -> Optional[Actor]:
    if speaker is None or isinstance(speaker, dict):
        return speaker
    if not isinstance(speaker, str):
        raise GraphLoadError(f"Speaker in {graph_name!r} must be an actor id, got {speaker!r}")
    actor = actors.get(speaker)
    if actor is None:
        raise GraphLoadError(f"Unknown speaker {speaker!r} in {graph_name!r}")
    return actor


def _options_to_lists(graph_name: str, options: list[Any]) -> dict[str, list[Any]]:
    lists: dict[str, list[Any]] = {"options": []}
    lists.update({name: [] for name in OPTION_LIST_DEFAULTS})
    if not isinstance(options, list):
        raise GraphLoadError(f"Options in {graph_name!r} must be a list, got {type(options).__name__}")

    for option in options:
        if isinstance(option, str):
            option = {"label": option}
        elif not isinstance(option, dict):
            raise GraphLoadError(f"Option {option!r} in {graph_name!r} must be a label or an object")
        unknown = set(option) - set(_OPTION_KEYS)
        if unknown:
            raise GraphLoadError(f"Unknown option keys {sorted(unknown)} in {graph_name!r}")
        lists["options"].append(option.get("label", ""))
        for list_name, default in OPTION_LIST_DEFAULTS.items():
            lists[list_name].append(default())
        for key, value in option.items():
            if key != "label":
                lists[_OPTION_KEYS[key]][-1] = value
    return lists


def _dump_node(node: BaseNode, actors: dict[str, dict[str, Any]]) -> dict[str, Any]:
    data = {"type": node.get_type_name(), **node.model_dump(mode="json")}

    speaker = getattr(node, "speaker", None)
    if speaker is not None and speaker.id:
        actors[speaker.id] = speaker.model_dump(mode="json", exclude={"id"})
        data["speaker"] = speaker.id

    if isinstance(node, DialogueNode):
        for list_name in OPTION_LIST_DEFAULTS:
            data.pop(list_name)
        data["options"] = [_dump_option(entry) for entry in node.option_entries()]

    return data


def _dump_option(entry: OptionEntry) -> dict[str, Any]:
    option: dict[str, Any] = {"label": entry.label, "target": entry.target}
    defaults = {
        attr: OPTION_LIST_DEFAULTS[list_name]()
        for list_name, attr in OPTION_EFFECT_FIELDS.items()
    }
    for attr, default in defaults.items():
        value = getattr(entry.effects, attr)
        if value != default:
            option[attr] = value.value if hasattr(value, "value") else value
    return option
