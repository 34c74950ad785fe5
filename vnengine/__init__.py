"""
VN Engine - engine-level building blocks for the dialogue framework.

Layers:
- core: node model base, type registry, event bus
- resources: data loading with JSON schema validation
"""

__version__ = "0.1.0"
