import pytest
import json

from vnframework.dialogue.persistence import (
    JsonCompletionStore,
    JsonProgressStore,
    MemoryCompletionStore,
    MemoryProgressStore,
    completion_key,
)


def test_completion_key_format():
    assert completion_key("intro", "Judge", "abc") == "DialogueGraph_intro_Judge_abc"
    assert completion_key("intro", "Judge", "abc", prefix="Save_") == "Save_intro_Judge_abc"

def test_memory_store(completion_store):
    assert not completion_store.is_complete("g", "n", "1")

    completion_store.mark_complete("g", "n", "1")
    assert completion_store.is_complete("g", "n", "1")
    assert not completion_store.is_complete("g", "n", "2")

    assert completion_store.reset("g", "n", "1")
    assert not completion_store.reset("g", "n", "1")
    assert not completion_store.is_complete("g", "n", "1")

def test_memory_store_prefix():
    store = MemoryCompletionStore(key_prefix="X_")
    store.mark_complete("g", "n", "1")
    assert list(store.records) == ["X_g_n_1"]

def test_json_store_persists(tmp_path):
    path = tmp_path / "saves" / "completion.json"

    store = JsonCompletionStore(path)
    store.mark_complete("g", "n", "1")

    assert json.loads(path.read_text()) == {"DialogueGraph_g_n_1": True}
    assert JsonCompletionStore(path).is_complete("g", "n", "1")

def test_json_store_reset(tmp_path):
    path = tmp_path / "completion.json"
    store = JsonCompletionStore(path)
    store.mark_complete("g", "n", "1")

    assert store.reset("g", "n", "1")
    assert json.loads(path.read_text()) == {}

def test_json_store_missing_file(tmp_path):
    store = JsonCompletionStore(tmp_path / "none.json")
    assert store.records == {}
    assert not (tmp_path / "none.json").exists()

@pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
def test_json_store_bad_file_starts_empty(tmp_path, content):
    path = tmp_path / "completion.json"
    path.write_text(content)

    store = JsonCompletionStore(path)

    assert store.records == {}
    store.mark_complete("g", "n", "1")
    assert json.loads(path.read_text()) == {"DialogueGraph_g_n_1": True}

def test_json_store_only_trusts_booleans(tmp_path):
    path = tmp_path / "completion.json"
    path.write_text(json.dumps({
        "DialogueGraph_g_a_1": "false",
        "DialogueGraph_g_b_2": 1,
        "DialogueGraph_g_c_3": False,
        "DialogueGraph_g_d_4": True,
    }))

    store = JsonCompletionStore(path)

    assert not store.is_complete("g", "a", "1")
    assert not store.is_complete("g", "b", "2")
    assert not store.is_complete("g", "c", "3")
    assert store.is_complete("g", "d", "4")
    assert store.records == {"DialogueGraph_g_d_4": True}

def test_json_store_failed_write_keeps_old_file(tmp_path, monkeypatch):
    path = tmp_path / "completion.json"
    store = JsonCompletionStore(path)
    store.mark_complete("g", "n", "1")

    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("vnframework.dialogue.persistence.json.dump", fail)
    store.mark_complete("g", "n", "2")

    assert store.is_complete("g", "n", "2")
    assert json.loads(path.read_text()) == {"DialogueGraph_g_n_1": True}
    assert list(tmp_path.iterdir()) == [path]


# --- Sequence progress ---

def test_memory_progress_store():
    store = MemoryProgressStore()
    assert store.get_index("NPC_judge_DialogueIndex") == 0

    store.set_index("NPC_judge_DialogueIndex", 2)
    assert store.get_index("NPC_judge_DialogueIndex") == 2

def test_json_progress_store_persists(tmp_path):
    path = tmp_path / "saves" / "progress.json"

    JsonProgressStore(path).set_index("NPC_judge_DialogueIndex", 1)

    assert json.loads(path.read_text()) == {"NPC_judge_DialogueIndex": 1}
    assert JsonProgressStore(path).get_index("NPC_judge_DialogueIndex") == 1

def test_json_progress_store_drops_bad_entries(tmp_path):
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({"a": "2", "b": -1, "c": True, "d": 1.5, "e": 3}))

    store = JsonProgressStore(path)

    assert store.records == {"e": 3}
    assert store.get_index("a") == 0
