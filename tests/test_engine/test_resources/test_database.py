import pytest
import json
import jsonschema
from vnengine.resources.database import DialogueDatabase, SCHEMA_DIR

def write_graph(path, data):
    with open(path, "w") as f:
        json.dump(data, f)

@pytest.fixture
def mock_db_path(tmp_path):
    data = tmp_path / "dialogue"
    data.mkdir()
    return data

def test_load_all(mock_db_path):
    write_graph(mock_db_path / "intro.json", {
        "name": "intro",
        "start_node": "a",
        "nodes": [{"type": "dialogue", "id": "a", "text": "Hello"}],
    })

    db = DialogueDatabase(mock_db_path)
    db.load_all()

    assert db.graph_names() == ["intro"]
    assert db.get_graph_data("intro")["nodes"][0]["text"] == "Hello"

def test_validation_error(mock_db_path):
    # Node without an id
    write_graph(mock_db_path / "broken.json", {
        "name": "broken",
        "nodes": [{"type": "dialogue", "text": "Hello"}],
    })
    write_graph(mock_db_path / "good.json", {"name": "good", "nodes": []})

    db = DialogueDatabase(mock_db_path)
    db.load_all()

    assert "broken" not in db.graphs # Should be skipped due to validation error
    assert "good" in db.graphs

def test_unknown_node_type_rejected(mock_db_path):
    write_graph(mock_db_path / "odd.json", {
        "name": "odd",
        "nodes": [{"type": "cutscene", "id": "a"}],
    })

    db = DialogueDatabase(mock_db_path)
    db.load_all()

    assert db.graphs == {}

def test_invalid_json_skipped(mock_db_path):
    (mock_db_path / "bad.json").write_text("{not json")

    db = DialogueDatabase(mock_db_path)
    db.load_all()

    assert db.graphs == {}

def test_missing_data_directory(tmp_path):
    db = DialogueDatabase(tmp_path / "nowhere")
    db.load_all()

    assert db.graphs == {}

def test_missing_schema_loads_unvalidated(mock_db_path, tmp_path):
    # Without a schema, files are loaded as long as they carry a name
    write_graph(mock_db_path / "loose.json", {"name": "loose", "nodes": [{"type": "cutscene"}]})

    db = DialogueDatabase(mock_db_path, schema_dir=tmp_path / "no_schemas")
    db.load_all()

    assert "loose" in db.graphs

def test_validate_raises(mock_db_path):
    db = DialogueDatabase(mock_db_path)

    db.validate({"name": "ok", "nodes": []})
    with pytest.raises(jsonschema.ValidationError):
        db.validate({"nodes": []})

def test_packaged_schema_exists():
    assert (SCHEMA_DIR / "dialogue_graph.schema.json").exists()
