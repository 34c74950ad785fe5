"""
Dialogue runner configuration.
"""

from __future__ import annotations


class DialogueConfig:
    """Configuration for a dialogue runner."""

    def __init__(
        self,
        save_completed_dialogues: bool = True,
        reset_one_time_on_start: bool = False,
        completion_key_prefix: str = "DialogueGraph_",
        repair_on_start: bool = True,
        max_silent_hops: int = 64,
        strict: bool = False,
    ):
        # When False, one-time nodes are never read from or written to the store
        self.save_completed_dialogues = save_completed_dialogues
        # Clear one-time records for the graph when the runner is created
        self.reset_one_time_on_start = reset_one_time_on_start
        self.completion_key_prefix = completion_key_prefix
        self.repair_on_start = repair_on_start
        # Consecutive condition/event hops before a silent cycle is assumed
        self.max_silent_hops = max_silent_hops
        # Raise DialogueConfigurationError instead of refusing to start a misconfigured graph
        self.strict = strict
