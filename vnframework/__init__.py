"""
VN Framework module.

Provides game-facing systems built on top of the engine:
- Dialogue (node graphs, traversal, one-time records)
"""
