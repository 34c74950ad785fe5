"""
One-time dialogue completion records and dialogue sequence progress.

A record is keyed by (graph name, node name, node id) and flattened to a
single string key, e.g. "DialogueGraph_intro_Judge: Order!_3f2a...".
Only the boolean "complete" state is stored. Sequence progress is a
separate store of key -> graph index, e.g. "NPC_judge_DialogueIndex": 2.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "DialogueGraph_"


def _read_json_object(path: Path, what: str) -> Optional[dict[str, Any]]:
    """Read a JSON object from path. Missing, unreadable or non-object files give None."""
    if not path.exists():
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read {what} {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"{what.capitalize()} in {path} are not an object, ignoring")
        return None
    return data


def _write_json_object(path: Path, data: dict[str, Any], what: str) -> bool:
    """Write data through a temp file so a failed write never truncates path."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to write {what} {path}: {e}")
        tmp_path.unlink(missing_ok=True)
        return False
    return True


def completion_key(
    graph_name: str,
    node_name: str,
    node_id: str,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """Build the flat storage key for a completion record."""
    return f"{prefix}{graph_name}_{node_name}_{node_id}"


class CompletionStore(ABC):
    """Keyed boolean store for one-time dialogue completion."""

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.key_prefix = key_prefix

    def key(self, graph_name: str, node_name: str, node_id: str) -> str:
        return completion_key(graph_name, node_name, node_id, self.key_prefix)

    @abstractmethod
    def is_complete(self, graph_name: str, node_name: str, node_id: str) -> bool:
        """Check whether a one-time node has been completed."""

    @abstractmethod
    def mark_complete(self, graph_name: str, node_name: str, node_id: str) -> None:
        """Record a one-time node as completed."""

    @abstractmethod
    def reset(self, graph_name: str, node_name: str, node_id: str) -> bool:
        """
        Forget a completion record.

        Returns:
            True if a record existed
        """


class MemoryCompletionStore(CompletionStore):
    """Completion records held in a dict for the lifetime of the process."""

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        super().__init__(key_prefix)
        self.records: dict[str, bool] = {}

    def is_complete(self, graph_name: str, node_name: str, node_id: str) -> bool:
        return self.records.get(self.key(graph_name, node_name, node_id), False)

    def mark_complete(self, graph_name: str, node_name: str, node_id: str) -> None:
        self.records[self.key(graph_name, node_name, node_id)] = True

    def reset(self, graph_name: str, node_name: str, node_id: str) -> bool:
        return self.records.pop(self.key(graph_name, node_name, node_id), None) is not None


class JsonCompletionStore(MemoryCompletionStore):
    """
    Completion records persisted to a JSON file.

    The file is a flat object of key -> bool, rewritten after every change.
    A missing file is an empty store; an unreadable one is logged and
    treated as empty rather than blocking dialogue.
    """

    def __init__(self, path: str | Path, key_prefix: str = DEFAULT_KEY_PREFIX):
        super().__init__(key_prefix)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        data = _read_json_object(self.path, "completion records")
        if data is None:
            return

        for key, value in data.items():
            if isinstance(value, bool):
                if value:
                    self.records[str(key)] = True
            else:
                logger.warning(f"Dropping completion record {key!r} in {self.path}: {value!r} is not a boolean")
        logger.debug(f"Loaded {len(self.records)} completion records from {self.path}")

    def _save(self) -> None:
        _write_json_object(self.path, self.records, "completion records")

    def mark_complete(self, graph_name: str, node_name: str, node_id: str) -> None:
        super().mark_complete(graph_name, node_name, node_id)
        self._save()

    def reset(self, graph_name: str, node_name: str, node_id: str) -> bool:
        existed = super().reset(graph_name, node_name, node_id)
        if existed:
            self._save()
        return existed


class ProgressStore(ABC):
    """Keyed non-negative index store for dialogue sequences."""

    @abstractmethod
    def get_index(self, key: str) -> int:
        """Stored index for key, 0 when nothing was stored."""

    @abstractmethod
    def set_index(self, key: str, index: int) -> None:
        """Store the index for key."""


class MemoryProgressStore(ProgressStore):
    """Sequence progress held in a dict for the lifetime of the process."""

    def __init__(self):
        self.records: dict[str, int] = {}

    def get_index(self, key: str) -> int:
        return self.records.get(key, 0)

    def set_index(self, key: str, index: int) -> None:
        self.records[key] = index


class JsonProgressStore(MemoryProgressStore):
    """
    Sequence progress persisted to a JSON file of key -> index.

    Entries that are not non-negative integers are logged and dropped.
    """

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        data = _read_json_object(self.path, "sequence progress")
        if data is None:
            return

        for key, value in data.items():
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                self.records[str(key)] = value
            else:
                logger.warning(f"Dropping sequence progress {key!r} in {self.path}: {value!r} is not an index")

    def set_index(self, key: str, index: int) -> None:
        super().set_index(key, index)
        _write_json_object(self.path, self.records, "sequence progress")
