"""
Dialogue node - a spoken line, optionally followed by player choices.

Choice data is authored as parallel lists (labels, targets and per-option
effects) that must stay index-aligned with `options`. The option lists are
padded or truncated to match the labels, never the other way round.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional

from pydantic import Field, PrivateAttr

from vnengine.core.component import register_node
from vnframework.dialogue.backends import AnimType, ShakeLevel
from vnframework.dialogue.nodes.base import (
    Actor,
    BaseNode,
    NodeKind,
    NodeRef,
    preview,
    speaker_label,
)

if TYPE_CHECKING:
    from vnframework.dialogue.presenter import DialoguePresenter
    from vnframework.dialogue.runner import DialogueRunner

logger = logging.getLogger(__name__)


class DialogueMode(Enum):
    """How a dialogue node moves on."""
    LINEAR = "linear"    # Single successor via next()
    CHOICE = "choice"    # Successor picked by option index


class PendingEffect(Enum):
    """Option side effect the node is waiting on."""
    TIMELINE = auto()
    ANIMATION = auto()


@dataclass(frozen=True)
class OptionEffects:
    """Side effects dispatched when an option is chosen."""
    timeline_id: str = ""
    wait_for_timeline: bool = True
    shake_enabled: bool = False
    shake_level: ShakeLevel = ShakeLevel.MEDIUM
    voice_ref: Optional[str] = None
    play_anim: bool = False
    anim_type: AnimType = AnimType.NONE
    anim_name: str = ""


@dataclass(frozen=True)
class OptionEntry:
    """Typed view of one choice option."""
    index: int
    label: str
    target: NodeRef
    effects: OptionEffects


# Parallel option list -> neutral value used when padding
OPTION_LIST_DEFAULTS: dict[str, Callable[[], Any]] = {
    "targets": lambda: None,
    "option_timeline_ids": lambda: "",
    "option_wait_for_timeline": lambda: True,
    "option_shake_camera": lambda: False,
    "option_shake_levels": lambda: ShakeLevel.MEDIUM,
    "option_voice_refs": lambda: None,
    "option_play_anim": lambda: False,
    "option_anim_types": lambda: AnimType.NONE,
    "option_anim_names": lambda: "",
}

# Parallel option list -> OptionEffects attribute
OPTION_EFFECT_FIELDS = {
    "option_timeline_ids": "timeline_id",
    "option_wait_for_timeline": "wait_for_timeline",
    "option_shake_camera": "shake_enabled",
    "option_shake_levels": "shake_level",
    "option_voice_refs": "voice_ref",
    "option_play_anim": "play_anim",
    "option_anim_types": "anim_type",
    "option_anim_names": "anim_name",
}


@register_node
class DialogueNode(BaseNode):
    """
    A line of dialogue.

    Attributes:
        speaker: Speaking actor (None = narrator)
        text: Line shown in the dialogue box
        mode: LINEAR (next_node) or CHOICE (options/targets)
        next_node: Successor in LINEAR mode
        options: Choice labels in CHOICE mode
        targets: Successor per option
        voice_ref: Voice line played when the node is shown
        shake_on_show: Shake the camera when the node is shown
        is_one_time: Record completion on first visit
        is_end: Explicit end-of-conversation marker
    """

    _type_name: ClassVar[str] = "dialogue"
    kind: ClassVar[NodeKind] = NodeKind.DIALOGUE

    speaker: Optional[Actor] = None
    text: str = ""
    mode: DialogueMode = DialogueMode.LINEAR
    next_node: NodeRef = None

    # Choice options (parallel lists)
    options: list[str] = Field(default_factory=list)
    targets: list[NodeRef] = Field(default_factory=list)
    option_timeline_ids: list[str] = Field(default_factory=list)
    option_wait_for_timeline: list[bool] = Field(default_factory=list)
    option_shake_camera: list[bool] = Field(default_factory=list)
    option_shake_levels: list[ShakeLevel] = Field(default_factory=list)
    option_voice_refs: list[Optional[str]] = Field(default_factory=list)
    option_play_anim: list[bool] = Field(default_factory=list)
    option_anim_types: list[AnimType] = Field(default_factory=list)
    option_anim_names: list[str] = Field(default_factory=list)

    # Presentation extras
    voice_ref: Optional[str] = None
    shake_on_show: bool = False
    shake_level: ShakeLevel = ShakeLevel.MEDIUM

    is_one_time: bool = False
    is_end: bool = False

    _selected_index: int = PrivateAttr(default=-1)
    _pending_effect: Optional[PendingEffect] = PrivateAttr(default=None)

    @property
    def is_choice(self) -> bool:
        return self.mode == DialogueMode.CHOICE

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def pending_effect(self) -> Optional[PendingEffect]:
        return self._pending_effect

    def default_name(self) -> str:
        return f"{speaker_label(self.speaker)}: {preview(self.text, 12) or '(empty)'}"

    def tracks_completion(self) -> bool:
        return self.is_one_time

    def reset_runtime_state(self) -> None:
        self._selected_index = -1
        self._pending_effect = None

    # --- Authoring helpers ---

    def add_option(self, label: str, target: NodeRef = None, **effects: Any) -> OptionEntry:
        """
        Append an option with its target and effects.

        Args:
            label: Button label
            target: Successor node id
            **effects: OptionEffects fields (timeline_id, shake_enabled, ...)
        """
        self.align_option_lists()
        self.mode = DialogueMode.CHOICE
        values = {name: default() for name, default in OPTION_LIST_DEFAULTS.items()}
        values["targets"] = target
        for list_name, attr in OPTION_EFFECT_FIELDS.items():
            if attr in effects:
                values[list_name] = effects.pop(attr)
        if effects:
            raise TypeError(f"Unknown option effects: {sorted(effects)}")

        self.options = [*self.options, label]
        for list_name, value in values.items():
            setattr(self, list_name, [*getattr(self, list_name), value])
        return self.option(len(self.options) - 1)

    def option(self, index: int) -> Optional[OptionEntry]:
        """Typed view of an option, or None when out of range."""
        if not 0 <= index < len(self.options):
            return None

        def pick(list_name: str) -> Any:
            values = getattr(self, list_name)
            if index < len(values):
                return values[index]
            return OPTION_LIST_DEFAULTS[list_name]()

        effects = OptionEffects(**{attr: pick(name) for name, attr in OPTION_EFFECT_FIELDS.items()})
        return OptionEntry(
            index=index,
            label=self.options[index],
            target=pick("targets"),
            effects=effects,
        )

    def option_entries(self) -> list[OptionEntry]:
        return [self.option(i) for i in range(len(self.options))]

    def align_option_lists(self) -> list[str]:
        """
        Pad or truncate every parallel option list to len(options).

        Returns:
            Names of the lists that changed (empty when already aligned)
        """
        count = len(self.options)
        changed = []
        for list_name, default in OPTION_LIST_DEFAULTS.items():
            values = list(getattr(self, list_name))
            if len(values) == count:
                continue
            if len(values) < count:
                values.extend(default() for _ in range(count - len(values)))
            else:
                del values[count:]
            setattr(self, list_name, values)
            changed.append(list_name)
        return changed

    # --- Node contract ---

    def process(self, presenter: DialoguePresenter, runner: DialogueRunner) -> None:
        self.reset_runtime_state()

        presenter.show_dialogue(self.speaker, self.text)
        if self.shake_on_show:
            runner.shake_camera(self.shake_level)
        if self.voice_ref:
            runner.play_voice(self.voice_ref)

        if self.is_end or not self.is_choice:
            presenter.hide_options()
            return

        repaired = self.align_option_lists()
        if repaired:
            logger.warning(f"Realigned option lists of {self}: {', '.join(repaired)}")

        if not self.options:
            logger.warning(f"Choice node {self} has no options")
            presenter.hide_options()
            return

        presenter.show_options(
            list(self.options),
            lambda index: runner.select_option(index, node=self),
        )

    def choose(self, index: int, runner: DialogueRunner) -> None:
        """
        Resolve the choice and dispatch its side effects.

        Advances through the runner unless a timeline or animation has to
        finish first; in that case runner.effect_completed() resumes.
        """
        if self._pending_effect is not None:
            logger.debug(f"{self} is waiting for {self._pending_effect.name}, ignoring option {index}")
            return

        self._selected_index = index
        entry = self.option(index)
        if entry is None:
            logger.warning(f"Option {index} out of range for {self} ({len(self.options)} options)")
            runner.process_next_node()
            return

        effects = entry.effects
        if effects.voice_ref:
            runner.play_voice(effects.voice_ref)

        if effects.timeline_id:
            logger.debug(f"Option {entry.label!r} plays timeline {effects.timeline_id}")
            started = runner.play_timeline(effects.timeline_id)
            if started and effects.wait_for_timeline:
                self._pending_effect = PendingEffect.TIMELINE
                return

        self._continue_after_option(runner)

    def _continue_after_option(self, runner: DialogueRunner) -> None:
        entry = self.option(self._selected_index)
        if entry is not None:
            effects = entry.effects
            if effects.shake_enabled:
                runner.shake_camera(effects.shake_level)
            if effects.play_anim and (effects.anim_type != AnimType.NONE or effects.anim_name):
                if runner.play_animation(effects.anim_type, effects.anim_name):
                    self._pending_effect = PendingEffect.ANIMATION
                    return

        self._pending_effect = None
        runner.process_next_node()

    def on_effect_completed(self, runner: DialogueRunner) -> bool:
        """Resume after a timeline or animation finished."""
        pending = self._pending_effect
        if pending is None:
            return False

        self._pending_effect = None
        if pending == PendingEffect.TIMELINE:
            self._continue_after_option(runner)
        else:
            runner.process_next_node()
        return True

    def get_next_node(self) -> NodeRef:
        if self.is_end:
            return None

        if self.is_choice:
            index = self._selected_index
            if 0 <= index < len(self.options) and index < len(self.targets):
                return self.targets[index]
            return None

        return self.next_node

    def is_end_node(self) -> bool:
        if self.is_end:
            return True
        if self.is_choice:
            return not any(self.targets)
        return self.next_node is None

    def outgoing(self) -> list[tuple[str, NodeRef]]:
        if self.is_choice:
            return [
                (f"option {i + 1} ({label!r})", self.targets[i] if i < len(self.targets) else None)
                for i, label in enumerate(self.options)
            ]
        return [("next", self.next_node)]
