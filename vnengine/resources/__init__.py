"""Static data loading."""

from vnengine.resources.database import DialogueDatabase

__all__ = ["DialogueDatabase"]
