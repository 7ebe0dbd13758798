"""UI layer for Music Today.

Contains:
- canvas: physics-driven track canvas (pygame viewer)
"""

__all__ = []
