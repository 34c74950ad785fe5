"""
Graph validation and repair.

repair_* functions fix data in place (option list alignment) and are run by
the runner before a conversation starts. validate_graph only reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from vnframework.dialogue.nodes.condition import ConditionNode
from vnframework.dialogue.nodes.dialogue import OPTION_LIST_DEFAULTS, DialogueNode
from vnframework.dialogue.nodes.event import EventNode
from vnframework.dialogue.nodes.presentation import PresentationNode

if TYPE_CHECKING:
    from vnframework.dialogue.graph import DialogueGraph

logger = logging.getLogger(__name__)


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationIssue:
    severity: Severity
    message: str
    node_id: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.node_id}]" if self.node_id else ""
        return f"{self.severity.value}{where}: {self.message}"


@dataclass
class ValidationReport:
    """Result of validate_graph()."""
    graph_name: str
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when there are no errors (warnings are allowed)."""
        return not self.errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def error(self, message: str, node_id: Optional[str] = None) -> None:
        self.issues.append(ValidationIssue(Severity.ERROR, message, node_id))

    def warning(self, message: str, node_id: Optional[str] = None) -> None:
        self.issues.append(ValidationIssue(Severity.WARNING, message, node_id))


def repair_choice_options(node: DialogueNode) -> list[str]:
    """
    Align a choice node's per-option lists with its labels.

    Returns:
        Names of the repaired lists; empty if nothing changed
    """
    if not node.is_choice:
        return []

    repaired = node.align_option_lists()
    if repaired:
        logger.warning(
            f"Repaired option lists of {node} to {len(node.options)} entries: {', '.join(repaired)}"
        )
    return repaired


def repair_graph(graph: DialogueGraph) -> int:
    """
    Repair every choice node in the graph.

    Returns:
        Number of nodes that needed repair
    """
    repaired = 0
    for node in graph:
        if isinstance(node, DialogueNode) and repair_choice_options(node):
            repaired += 1
    if repaired:
        logger.info(f"Repaired {repaired} nodes in {graph.name!r}")
    return repaired


def validate_graph(graph: DialogueGraph) -> ValidationReport:
    """
    Check a graph's structure without changing it.

    Errors: missing/dangling start node, edges to nodes outside the graph.
    Warnings: unconnected outputs, empty choices, misaligned option lists,
    duplicate item reactions.
    """
    report = ValidationReport(graph.name)

    if graph.start_node is None:
        report.error("No start node set")
    elif graph.start_node not in graph.nodes:
        report.error(f"Start node {graph.start_node!r} is not in the graph")

    for node in graph:
        for label, target in node.outgoing():
            if target is not None and target not in graph.nodes:
                report.error(f"{node} {label} points at missing node {target!r}", node.id)

        if isinstance(node, DialogueNode):
            _check_dialogue(node, report)
        elif isinstance(node, ConditionNode):
            if node.true_node is None:
                report.warning(f"{node} has no true branch", node.id)
            if node.false_node is None:
                report.warning(f"{node} has no false branch", node.id)
        elif isinstance(node, EventNode):
            if node.next_node is None and not node.is_end_event:
                report.warning(f"{node} has no next node and is not an end event", node.id)
        elif isinstance(node, PresentationNode):
            _check_presentation(node, report)

    for issue in report.issues:
        log = logger.error if issue.severity == Severity.ERROR else logger.warning
        log(f"{graph.name}: {issue}")
    return report


def _check_dialogue(node: DialogueNode, report: ValidationReport) -> None:
    if node.is_end:
        return

    if not node.is_choice:
        return

    if not node.options:
        report.warning(f"Choice node {node} has no options", node.id)
        return

    misaligned = [
        name for name in OPTION_LIST_DEFAULTS
        if len(getattr(node, name)) != len(node.options)
    ]
    if misaligned:
        report.warning(f"{node} option lists are misaligned: {', '.join(misaligned)}", node.id)

    for entry in node.option_entries():
        if entry.target is None:
            report.warning(f"{node} option {entry.index + 1} ({entry.label!r}) is not connected", node.id)


def _check_presentation(node: PresentationNode, report: ValidationReport) -> None:
    seen: set[str] = set()
    for reaction in node.reactions:
        if reaction.item_id in seen:
            report.warning(
                f"{node} has several reactions to {reaction.item_id!r}, only the first is used",
                node.id,
            )
        seen.add(reaction.item_id)

    if node.default_output is None and not node.is_end:
        report.warning(f"{node} has no default output", node.id)
