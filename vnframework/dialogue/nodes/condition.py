"""
Condition node - silent boolean branch.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING, Callable, ClassVar, Optional

from pydantic import PrivateAttr

from vnengine.core.component import register_node
from vnframework.dialogue.backends import GameStateBackend, QuestStatus
from vnframework.dialogue.nodes.base import BaseNode, NodeKind, NodeRef

if TYPE_CHECKING:
    from vnframework.dialogue.presenter import DialoguePresenter
    from vnframework.dialogue.runner import DialogueRunner

logger = logging.getLogger(__name__)


class ConditionType(Enum):
    """What a condition node checks."""
    NONE = "none"                       # Always false
    HAS_ITEM = "has_item"
    CHECK_FLAG = "check_flag"
    COMPARE_VALUE = "compare_value"
    CHECK_QUEST_STATUS = "check_quest_status"
    CUSTOM = "custom"                   # Injected predicate


class CompareOperator(Enum):
    EQUAL = "=="
    NOT_EQUAL = "!="
    GREATER = ">"
    LESS = "<"
    GREATER_OR_EQUAL = ">="
    LESS_OR_EQUAL = "<="

    def apply(self, left: float, right: float) -> bool:
        if self == CompareOperator.EQUAL:
            return math.isclose(left, right, abs_tol=1e-6)
        if self == CompareOperator.NOT_EQUAL:
            return not math.isclose(left, right, abs_tol=1e-6)
        if self == CompareOperator.GREATER:
            return left > right
        if self == CompareOperator.LESS:
            return left < right
        if self == CompareOperator.GREATER_OR_EQUAL:
            return left >= right
        return left <= right


@register_node
class ConditionNode(BaseNode):
    """
    Branches on game state without showing anything.

    The condition is evaluated once when the node is processed; the
    result picks true_node or false_node. An unconnected branch on the
    evaluated side ends the dialogue.
    """

    _type_name: ClassVar[str] = "condition"
    kind: ClassVar[NodeKind] = NodeKind.CONDITION

    condition_type: ConditionType = ConditionType.NONE

    # HAS_ITEM
    item_id: str = ""
    # CHECK_FLAG
    flag_name: str = ""
    expected_value: bool = True
    # COMPARE_VALUE
    variable_name: str = ""
    operator: CompareOperator = CompareOperator.EQUAL
    compare_value: float = 0.0
    # CHECK_QUEST_STATUS
    quest_id: str = ""
    expected_status: QuestStatus = QuestStatus.COMPLETED

    true_node: NodeRef = None
    false_node: NodeRef = None

    _result: Optional[bool] = PrivateAttr(default=None)
    _custom_condition: Optional[Callable[[], bool]] = PrivateAttr(default=None)

    @property
    def result(self) -> Optional[bool]:
        """Result of the last evaluation, None before the node was processed."""
        return self._result

    def set_custom_condition(self, callback: Optional[Callable[[], bool]]) -> None:
        """Inject the predicate used by CUSTOM conditions."""
        self._custom_condition = callback

    def default_name(self) -> str:
        detail = {
            ConditionType.HAS_ITEM: self.item_id,
            ConditionType.CHECK_FLAG: self.flag_name,
            ConditionType.COMPARE_VALUE: self.variable_name,
            ConditionType.CHECK_QUEST_STATUS: self.quest_id,
        }.get(self.condition_type, "")
        if self.condition_type == ConditionType.NONE:
            return "Condition"
        label = f"Condition_{self.condition_type.value}"
        return f"{label}_{detail}" if detail else label

    def reset_runtime_state(self) -> None:
        self._result = None

    def evaluate(self, state: Optional[GameStateBackend]) -> bool:
        """Evaluate against game state. Missing data or backends read as False."""
        if self.condition_type == ConditionType.NONE:
            return False

        if self.condition_type == ConditionType.CUSTOM:
            if self._custom_condition is None:
                logger.warning(f"{self} has no custom condition set")
                return False
            return self._guarded(self._custom_condition)

        if state is None:
            logger.warning(f"{self} needs game state but no backend is available")
            return False

        if self.condition_type == ConditionType.HAS_ITEM:
            if not self.item_id:
                logger.warning(f"{self} has no item to check")
                return False
            return self._guarded(lambda: state.has_item(self.item_id))

        if self.condition_type == ConditionType.CHECK_FLAG:
            if not self.flag_name:
                logger.warning(f"{self} has no flag name")
                return False
            return self._guarded(lambda: state.get_flag(self.flag_name) == self.expected_value)

        if self.condition_type == ConditionType.COMPARE_VALUE:
            if not self.variable_name:
                logger.warning(f"{self} has no variable name")
                return False
            return self._guarded(
                lambda: self.operator.apply(
                    float(state.get_numeric_variable(self.variable_name)),
                    self.compare_value,
                )
            )

        if self.condition_type == ConditionType.CHECK_QUEST_STATUS:
            if not self.quest_id:
                logger.warning(f"{self} has no quest id")
                return False
            return self._guarded(lambda: state.get_quest_status(self.quest_id) == self.expected_status)

        return False

    def _guarded(self, check: Callable[[], bool]) -> bool:
        try:
            return bool(check())
        except Exception as e:
            logger.warning(f"{self} evaluation failed, treating as false: {e}")
            return False

    def process(self, presenter: DialoguePresenter, runner: DialogueRunner) -> None:
        self._result = self.evaluate(runner.game_state)
        logger.debug(f"{self} evaluated to {self._result}")
        runner.process_next_node()

    def get_next_node(self) -> NodeRef:
        if self._result is None:
            return None

        target = self.true_node if self._result else self.false_node
        if target is None:
            logger.warning(f"{self} has no {'true' if self._result else 'false'} branch connected")
        return target

    def outgoing(self) -> list[tuple[str, NodeRef]]:
        return [("true", self.true_node), ("false", self.false_node)]
