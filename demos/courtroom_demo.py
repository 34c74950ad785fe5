"""
Courtroom Demo: Dialogue Framework

Demonstrates:
- Loading a dialogue graph from JSON
- Linear lines and player choices
- Presenting evidence
- Condition and event nodes
- One-time dialogue records

Controls:
- Enter: Next line
- Number: Pick an option
- Item id: Present evidence (empty line presents nothing)
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vnengine.core.events import DialogueEvent, EventBus
from vnframework.dialogue import (
    DialogueRunner,
    MemoryGameState,
    NullPresenter,
    PresentationNode,
    load_graph_file,
    validate_graph,
)

DATA_PATH = Path(__file__).parent / "data" / "courtroom.json"


class ConsolePresenter(NullPresenter):
    """Prints dialogue and remembers what input the node expects."""

    def __init__(self):
        self.options: list[str] = []
        self.on_selected = None
        self.on_item_chosen = None
        self.finished = False

    def show_dialogue(self, speaker, text):
        name = speaker.name if speaker else "Narrator"
        print(f"\n{name}: {text}")

    def show_options(self, labels, on_selected):
        self.options = list(labels)
        self.on_selected = on_selected
        for i, label in enumerate(labels, start=1):
            print(f"  {i}. {label}")

    def hide_options(self):
        self.options = []
        self.on_selected = None

    def enable_item_presentation(self, on_item_chosen):
        self.on_item_chosen = on_item_chosen
        print("  (present an item: receipt, badge ...)")

    def disable_item_presentation(self):
        self.on_item_chosen = None

    def on_dialogue_ended(self):
        self.finished = True
        print("\n-- dialogue ended --")


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    graph = load_graph_file(DATA_PATH)
    report = validate_graph(graph)
    if not report.is_valid:
        print("Graph has errors:", *report.errors, sep="\n  ")
        return

    state = MemoryGameState()
    state.set_flag("read_receipt")

    events = EventBus()
    events.subscribe(
        DialogueEvent.ITEM_PRESENTED,
        lambda e: print(f"  [presented {e['item_id']!r}]"),
        weak=False,
    )

    presenter = ConsolePresenter()
    runner = DialogueRunner(graph, game_state=state, events=events)
    if not runner.start_dialogue(presenter):
        print("Dialogue could not start")
        return

    while not presenter.finished:
        try:
            answer = input("> ").strip()
        except EOFError:
            runner.end_dialogue()
            break

        if isinstance(runner.current_node, PresentationNode) and presenter.on_item_chosen:
            presenter.on_item_chosen(answer or None)
        elif presenter.on_selected and answer.isdigit():
            presenter.on_selected(int(answer) - 1)
        else:
            runner.next()

    print(f"Inventory: {state.items}")


if __name__ == "__main__":
    main()
