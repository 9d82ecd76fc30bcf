from __future__ import annotations

from enum import Enum

"""Compass directions for header search.

Rows grow downward and columns grow rightward, so "north" means a smaller
row number and "west" a smaller column number.
"""

__all__ = [
    "Direction",
]


class Direction(Enum):
    """Direction pattern used to locate a data cell's governing header."""

    NORTH = "NORTH"  # same col, nearest header above
    WEST = "WEST"  # same row, nearest header to the left
    WEST_THEN_NORTH = "WEST_THEN_NORTH"  # walk to the row's west wall, then up

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Accept enum members or case-insensitive names (``"west-then-north"`` too)."""
        if isinstance(value, Direction):
            return value
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        aliases = {"N": "NORTH", "W": "WEST", "WNW": "WEST_THEN_NORTH"}
        key = aliases.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"unknown direction: {value!r}") from None
