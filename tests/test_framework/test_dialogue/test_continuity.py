import pytest

from vnframework.dialogue.continuity import DialogueContinuity
from vnframework.dialogue.graph import DialogueGraph
from vnframework.dialogue.nodes import DialogueNode
from vnframework.dialogue.runner import DialogueRunner


@pytest.fixture
def runner():
    graph = DialogueGraph(name="walk")
    graph.add_node(DialogueNode(id="a", text="Nice weather.", next_node="b"), start=True)
    graph.add_node(DialogueNode(id="b", text="Shall we go inside?"))
    return DialogueRunner(graph)


def test_save_and_restore_with_new_presenter(runner, presenter):
    continuity = DialogueContinuity()
    runner.start_dialogue(presenter)
    runner.next()

    snapshot = continuity.save(runner)
    assert snapshot.node_id == "b"
    assert continuity.has_snapshot("walk")

    # Scene change: the old UI goes away
    runner.end_dialogue()

    new_presenter = type(presenter)()
    assert continuity.restore(runner, new_presenter)
    assert new_presenter.texts == ["Shall we go inside?"]
    assert runner.presenter is new_presenter
    assert runner.current_node.id == "b"
    assert not continuity.has_snapshot("walk")

def test_save_idle_runner(runner):
    continuity = DialogueContinuity()
    assert continuity.save(runner) is None
    assert not continuity.has_snapshot("walk")

def test_restore_without_snapshot(runner, presenter):
    assert not DialogueContinuity().restore(runner, presenter)
    assert presenter.calls == []

def test_restore_removed_node(runner, presenter):
    continuity = DialogueContinuity()
    runner.start_dialogue(presenter)
    runner.next()
    continuity.save(runner)
    runner.end_dialogue()
    runner.graph.remove_node("b")

    assert not continuity.restore(runner, presenter)
    assert not continuity.has_snapshot("walk")

def test_clear(runner, presenter):
    continuity = DialogueContinuity()
    runner.start_dialogue(presenter)
    continuity.save(runner)

    continuity.clear("other")
    assert continuity.has_snapshot("walk")
    continuity.clear()
    assert not continuity.has_snapshot("walk")

def test_resume_while_active_reattaches(runner, presenter):
    runner.start_dialogue(presenter)
    other = type(presenter)()

    assert runner.resume(other)
    assert other.texts == ["Nice weather."]
    assert runner.presenter is other
