"""
Dialogue Database.

Handles loading and validation of authored dialogue graph files.
"""

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

SCHEMA_DIR = Path(__file__).parent / "schemas"
GRAPH_SCHEMA = "dialogue_graph.schema.json"


class DialogueDatabase:
    """
    Central storage for dialogue graph data.

    Every *.json file in the data directory holds one graph. Files are
    validated against the graph schema; invalid files are logged and
    skipped so one broken script does not take the others down.
    """

    def __init__(self, data_path: Path | str, schema_dir: Path | str | None = None):
        self._data_path = Path(data_path)
        self._schema_dir = Path(schema_dir) if schema_dir else SCHEMA_DIR
        self._schemas: dict[str, Any] = {}

        # Graph name -> validated raw data
        self.graphs: dict[str, dict[str, Any]] = {}

        self.logger = logging.getLogger(__name__)

    def load_all(self) -> None:
        """Load all graph files from disk."""
        self._load_schemas()
        self.graphs = self._load_graphs()
        self.logger.info(f"Loaded {len(self.graphs)} dialogue graphs from {self._data_path}")

    def _load_schemas(self) -> None:
        """Load JSON schemas."""
        if not self._schema_dir.exists():
            self.logger.warning(f"Schema directory not found: {self._schema_dir}")
            return

        for schema_file in self._schema_dir.glob("*.schema.json"):
            try:
                with open(schema_file, 'r', encoding='utf-8') as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load schema {schema_file}: {e}")

    def _load_graphs(self) -> dict[str, dict[str, Any]]:
        """Load every graph file in the data directory."""
        data_store: dict[str, dict[str, Any]] = {}

        if not self._data_path.exists():
            self.logger.warning(f"Data directory not found: {self._data_path}")
            return data_store

        schema = self._schemas.get(GRAPH_SCHEMA)
        if schema is None:
            self.logger.warning(f"No schema found for dialogue graphs ({GRAPH_SCHEMA})")

        for file_path in sorted(self._data_path.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load {file_path}: {e}")
                continue

            if schema:
                try:
                    jsonschema.validate(instance=data, schema=schema)
                except jsonschema.ValidationError as e:
                    self.logger.error(f"Validation error in {file_path}: {e.message}")
                    continue

            name = data.get('name') if isinstance(data, dict) else None
            if not name:
                self.logger.error(f"Graph file {file_path} has no name")
                continue
            if name in data_store:
                self.logger.warning(f"Duplicate graph name {name!r} in {file_path}, replacing")
            data_store[name] = data

        return data_store

    def validate(self, data: Any) -> None:
        """
        Validate graph data against the schema.

        Raises:
            jsonschema.ValidationError: data does not match the schema
        """
        if not self._schemas:
            self._load_schemas()
        schema = self._schemas.get(GRAPH_SCHEMA)
        if schema is None:
            self.logger.warning(f"No schema found for dialogue graphs ({GRAPH_SCHEMA})")
            return
        jsonschema.validate(instance=data, schema=schema)

    def get_graph_data(self, name: str) -> dict[str, Any] | None:
        return self.graphs.get(name)

    def graph_names(self) -> list[str]:
        return sorted(self.graphs)
