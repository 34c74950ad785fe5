import pytest
from unittest.mock import MagicMock

from vnframework.dialogue.backends import AnimType, QuestAction, QuestStatus, ShakeLevel
from vnframework.dialogue.nodes import (
    Actor,
    CompareOperator,
    ConditionNode,
    ConditionType,
    DialogueMode,
    DialogueNode,
    EventNode,
    EventType,
    PendingEffect,
    PresentationNode,
)


@pytest.fixture
def runner(game_state):
    runner = MagicMock()
    runner.game_state = game_state
    runner.play_timeline.return_value = True
    runner.play_animation.return_value = True
    return runner


# --- DialogueNode ---

def test_linear_successor_and_end():
    node = DialogueNode(text="Hi", next_node="b")
    assert node.get_next_node() == "b"
    assert not node.is_end_node()

    node.next_node = None
    assert node.is_end_node()

def test_explicit_end_overrides_connection():
    node = DialogueNode(text="Bye", next_node="b", is_end=True)
    assert node.is_end_node()
    assert node.get_next_node() is None

def test_choice_successor_follows_selection(runner):
    node = DialogueNode(text="?")
    node.add_option("Yes", "y")
    node.add_option("No", "n")

    assert node.mode == DialogueMode.CHOICE
    assert node.get_next_node() is None

    node.choose(1, runner)
    assert node.get_next_node() == "n"
    runner.process_next_node.assert_called_once()

def test_choice_out_of_range_index_has_no_successor(runner):
    node = DialogueNode(mode=DialogueMode.CHOICE, options=["A"], targets=["a"])

    node.choose(5, runner)

    assert node.get_next_node() is None
    runner.process_next_node.assert_called_once()

def test_choice_without_targets_is_end():
    node = DialogueNode(mode=DialogueMode.CHOICE, options=["A", "B"], targets=[None, None])
    assert node.is_end_node()

def test_align_pads_and_truncates():
    node = DialogueNode(
        mode=DialogueMode.CHOICE,
        options=["A", "B", "C"],
        targets=["a"],
        option_shake_levels=[ShakeLevel.LIGHT] * 5,
    )

    changed = node.align_option_lists()

    assert "targets" in changed
    assert "option_shake_levels" in changed
    assert node.options == ["A", "B", "C"]
    assert node.targets == ["a", None, None]
    assert node.option_shake_levels == [ShakeLevel.LIGHT] * 3
    assert node.option_wait_for_timeline == [True, True, True]
    assert node.option_anim_types == [AnimType.NONE] * 3
    assert node.align_option_lists() == []

def test_option_view_fills_missing_entries():
    node = DialogueNode(mode=DialogueMode.CHOICE, options=["A", "B"], targets=["a"])

    entry = node.option(1)

    assert entry.label == "B"
    assert entry.target is None
    assert entry.effects.wait_for_timeline is True
    assert node.option(2) is None

def test_add_option_rejects_unknown_effect():
    node = DialogueNode()
    with pytest.raises(TypeError):
        node.add_option("A", "a", sparkles=True)

def test_process_linear_hides_options(presenter, runner):
    node = DialogueNode(speaker=Actor(id="judge", name="Judge"), text="Order!", next_node="b")

    node.process(presenter, runner)

    assert presenter.lines == [("Judge", "Order!")]
    assert "hide_options" in presenter.calls
    assert "show_options" not in presenter.calls

def test_process_choice_shows_options_and_repairs(presenter, runner):
    node = DialogueNode(mode=DialogueMode.CHOICE, options=["A", "B"], targets=["a"])

    node.process(presenter, runner)

    assert presenter.options == ["A", "B"]
    assert node.targets == ["a", None]
    presenter.on_selected(0)
    runner.select_option.assert_called_once_with(0, node=node)

def test_process_choice_without_options(presenter, runner):
    node = DialogueNode(mode=DialogueMode.CHOICE)

    node.process(presenter, runner)

    assert "show_options" not in presenter.calls
    assert "hide_options" in presenter.calls

def test_process_plays_node_voice_and_shake(presenter, runner):
    node = DialogueNode(text="!", voice_ref="vo_01", shake_on_show=True, shake_level=ShakeLevel.STRONG)

    node.process(presenter, runner)

    runner.shake_camera.assert_called_once_with(ShakeLevel.STRONG)
    runner.play_voice.assert_called_once_with("vo_01")

def test_option_timeline_suspends_until_completed(runner):
    node = DialogueNode()
    node.add_option("Watch", "w", timeline_id="tl_flashback", shake_enabled=True)

    node.choose(0, runner)

    assert node.pending_effect == PendingEffect.TIMELINE
    runner.play_timeline.assert_called_once_with("tl_flashback")
    runner.shake_camera.assert_not_called()
    runner.process_next_node.assert_not_called()

    # Input while waiting is ignored
    node.choose(0, runner)
    assert runner.play_timeline.call_count == 1

    assert node.on_effect_completed(runner)
    runner.shake_camera.assert_called_once_with(ShakeLevel.MEDIUM)
    runner.process_next_node.assert_called_once()
    assert node.pending_effect is None

def test_option_timeline_without_wait_advances(runner):
    node = DialogueNode()
    node.add_option("Go", "g", timeline_id="tl", wait_for_timeline=False)

    node.choose(0, runner)

    runner.process_next_node.assert_called_once()

def test_option_timeline_that_fails_advances(runner):
    runner.play_timeline.return_value = False
    node = DialogueNode()
    node.add_option("Go", "g", timeline_id="tl")

    node.choose(0, runner)

    runner.process_next_node.assert_called_once()

def test_option_animation_suspends(runner):
    node = DialogueNode()
    node.add_option("Show", "s", play_anim=True, anim_type=AnimType.PANEL, anim_name="evidence_panel")

    node.choose(0, runner)

    assert node.pending_effect == PendingEffect.ANIMATION
    runner.play_animation.assert_called_once_with(AnimType.PANEL, "evidence_panel")
    assert node.on_effect_completed(runner)
    runner.process_next_node.assert_called_once()

def test_option_voice_played(runner):
    node = DialogueNode()
    node.add_option("Speak", "s", voice_ref="vo_choice")

    node.choose(0, runner)

    runner.play_voice.assert_called_once_with("vo_choice")

def test_effect_completed_without_pending_effect(runner):
    node = DialogueNode(text="x")
    assert not node.on_effect_completed(runner)

def test_display_name_derived():
    node = DialogueNode(text="A very long line of dialogue")
    assert node.display_name == "Narrator: A very long ..."

    node.name = "Intro"
    assert node.display_name == "Intro"


# --- ConditionNode ---

def test_condition_has_item(game_state):
    node = ConditionNode(condition_type=ConditionType.HAS_ITEM, item_id="knife")
    assert not node.evaluate(game_state)

    game_state.give_item("knife")
    assert node.evaluate(game_state)

def test_condition_flag(game_state):
    node = ConditionNode(condition_type=ConditionType.CHECK_FLAG, flag_name="met", expected_value=False)
    assert node.evaluate(game_state)

    game_state.set_flag("met")
    assert not node.evaluate(game_state)

@pytest.mark.parametrize("operator, value, expected", [
    (CompareOperator.EQUAL, 3.0000001, True),
    (CompareOperator.NOT_EQUAL, 3.0, False),
    (CompareOperator.GREATER, 2.0, True),
    (CompareOperator.LESS, 2.0, False),
    (CompareOperator.GREATER_OR_EQUAL, 3.0, True),
    (CompareOperator.LESS_OR_EQUAL, 2.9, False),
])
def test_condition_compare(game_state, operator, value, expected):
    game_state.set_variable("trust", 3.0)
    node = ConditionNode(
        condition_type=ConditionType.COMPARE_VALUE,
        variable_name="trust",
        operator=operator,
        compare_value=value,
    )
    assert node.evaluate(game_state) is expected

def test_condition_quest_status(game_state):
    node = ConditionNode(
        condition_type=ConditionType.CHECK_QUEST_STATUS,
        quest_id="case1",
        expected_status=QuestStatus.IN_PROGRESS,
    )
    assert not node.evaluate(game_state)

    game_state.quest_action(QuestAction.ACCEPT_QUEST, "case1")
    assert node.evaluate(game_state)

def test_condition_missing_backend_is_false():
    node = ConditionNode(condition_type=ConditionType.HAS_ITEM, item_id="knife")
    assert not node.evaluate(None)

def test_condition_missing_parameter_is_false(game_state):
    node = ConditionNode(condition_type=ConditionType.CHECK_FLAG)
    assert not node.evaluate(game_state)

def test_condition_backend_error_is_false():
    state = MagicMock()
    state.has_item.side_effect = RuntimeError("inventory offline")
    node = ConditionNode(condition_type=ConditionType.HAS_ITEM, item_id="knife")

    assert not node.evaluate(state)

def test_condition_custom():
    node = ConditionNode(condition_type=ConditionType.CUSTOM)
    assert not node.evaluate(None)

    node.set_custom_condition(lambda: True)
    assert node.evaluate(None)

def test_condition_branch_selection(runner, game_state):
    node = ConditionNode(
        condition_type=ConditionType.HAS_ITEM,
        item_id="knife",
        true_node="t",
        false_node="f",
    )
    assert node.get_next_node() is None

    node.process(None, runner)
    assert node.result is False
    assert node.get_next_node() == "f"
    runner.process_next_node.assert_called_once()

    game_state.give_item("knife")
    node.process(None, runner)
    assert node.get_next_node() == "t"

def test_condition_unconnected_branch(runner):
    node = ConditionNode(condition_type=ConditionType.NONE, true_node="t")
    node.process(None, runner)

    assert node.get_next_node() is None
    assert not node.is_end_node()


# --- EventNode ---

def test_event_give_item(runner, game_state):
    node = EventNode(event_type=EventType.GIVE_ITEM, item_id="badge", next_node="n")

    node.process(None, runner)

    assert game_state.has_item("badge")
    assert node.executed
    runner.process_next_node.assert_called_once()
    assert node.get_next_node() == "n"

def test_event_play_sound(game_state):
    node = EventNode(event_type=EventType.PLAY_SOUND, sound_ref="gavel", volume=0.5)
    node.execute(game_state)
    assert game_state.played_sounds == [("gavel", 0.5)]

def test_event_volume_range():
    with pytest.raises(ValueError):
        EventNode(volume=1.5)

@pytest.mark.parametrize("action, status", [
    (QuestAction.ACCEPT_QUEST, QuestStatus.IN_PROGRESS),
    (QuestAction.COMPLETE_QUEST, QuestStatus.COMPLETED),
    (QuestAction.FAIL_QUEST, QuestStatus.FAILED),
])
def test_event_quest_actions(game_state, action, status):
    node = EventNode(event_type=EventType.QUEST_ACTION, quest_action=action, quest_id="case1")
    node.execute(game_state)
    assert game_state.get_quest_status("case1") == status

def test_event_complete_objective(game_state):
    node = EventNode(event_type=EventType.QUEST_ACTION, objective_id="find_knife")
    node.execute(game_state)
    assert "find_knife" in game_state.completed_objectives

def test_event_backend_failure_swallowed():
    state = MagicMock()
    state.give_item.side_effect = RuntimeError("full")
    node = EventNode(event_type=EventType.GIVE_ITEM, item_id="badge")

    node.execute(state)

    assert node.executed

def test_event_custom_action():
    calls = []
    node = EventNode(event_type=EventType.CUSTOM)
    node.set_custom_action(lambda: calls.append("ran"))

    node.execute(None)

    assert calls == ["ran"]

def test_end_event():
    node = EventNode(next_node="n", is_end_event=True)
    assert node.is_end_node()
    assert node.get_next_node() is None


# --- PresentationNode ---

def test_presentation_pending_until_item():
    node = PresentationNode(default_output="d")
    node.add_reaction("knife", "k")

    assert node.is_pending
    assert node.get_next_node() == node.id

    assert node.receive_item("knife")
    assert node.get_next_node() == "k"
    assert not node.receive_item("badge")

def test_presentation_first_reaction_wins():
    node = PresentationNode(default_output="d")
    node.add_reaction("knife", "first")
    node.add_reaction("knife", "second")

    node.receive_item("knife")

    assert node.get_next_node() == "first"

def test_presentation_default_output():
    node = PresentationNode(default_output="d")
    node.add_reaction("knife", "k")

    node.receive_item("badge")
    assert node.get_next_node() == "d"

    node.reset_runtime_state()
    node.receive_item(None)
    assert node.get_next_node() == "d"

def test_presentation_no_match_no_default():
    node = PresentationNode()
    node.add_reaction("knife", "k")

    node.receive_item("badge")

    assert node.get_next_node() is None

def test_presentation_end_node():
    node = PresentationNode(default_output="d", is_end=True)
    assert node.is_end_node()
    assert node.get_next_node() is None

    assert PresentationNode().is_end_node()

def test_presentation_process(presenter, runner):
    node = PresentationNode(text="Show me.")
    node.receive_item("old")

    node.process(presenter, runner)

    assert node.is_pending
    assert presenter.calls == ["enable_item_presentation", "show_dialogue"]
    presenter.on_item_chosen("knife")
    runner.present_item.assert_called_once_with("knife", node=node)
