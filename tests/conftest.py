import os
import sys
import pytest

# Ensure packages can be imported without installing
sys.path.append(os.getcwd())

from vnframework.dialogue.backends import EffectPlayer, MemoryGameState
from vnframework.dialogue.presenter import DialoguePresenter


class RecordingPresenter(DialoguePresenter):
    """Presenter that records every call for assertions."""

    def __init__(self):
        self.calls = []
        self.lines = []
        self.options = []
        self.on_selected = None
        self.on_item_chosen = None
        self.end_flags = []
        self.ended = 0

    def show_dialogue(self, speaker, text):
        self.calls.append("show_dialogue")
        self.lines.append((speaker.name if speaker else None, text))

    def show_options(self, labels, on_selected):
        self.calls.append("show_options")
        self.options = list(labels)
        self.on_selected = on_selected

    def hide_options(self):
        self.calls.append("hide_options")
        self.options = []
        self.on_selected = None

    def set_end_node_flag(self, is_end):
        self.calls.append("set_end_node_flag")
        self.end_flags.append(is_end)

    def enable_item_presentation(self, on_item_chosen):
        self.calls.append("enable_item_presentation")
        self.on_item_chosen = on_item_chosen

    def disable_item_presentation(self):
        self.calls.append("disable_item_presentation")
        self.on_item_chosen = None

    def on_dialogue_ended(self):
        self.calls.append("on_dialogue_ended")
        self.ended += 1

    @property
    def texts(self):
        return [text for _, text in self.lines]


class RecordingEffects(EffectPlayer):
    """Effect player that records calls; timelines/animations start if allowed."""

    def __init__(self, timelines_start=True, animations_start=True):
        self.timelines_start = timelines_start
        self.animations_start = animations_start
        self.calls = []

    def play_timeline(self, timeline_id):
        self.calls.append(("timeline", timeline_id))
        return self.timelines_start

    def shake_camera(self, level):
        self.calls.append(("shake", level))

    def play_animation(self, anim_type, anim_name):
        self.calls.append(("animation", anim_type, anim_name))
        return self.animations_start

    def play_voice(self, voice_ref):
        self.calls.append(("voice", voice_ref))

    def resume_timeline(self):
        self.calls.append(("resume_timeline",))


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def effects():
    return RecordingEffects()


@pytest.fixture
def game_state():
    return MemoryGameState()


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from vnengine.core.events import EventBus
    return EventBus()


@pytest.fixture
def completion_store():
    from vnframework.dialogue.persistence import MemoryCompletionStore
    return MemoryCompletionStore()
