from __future__ import annotations

from dataclasses import dataclass, field

from .cell import Cell

"""HeaderGroup / Classification models.

A HeaderGroup is a named, read-only view over grid cells acting as labels.
Header groups and data cells never own cells: they are partitions of the
cells held by a Grid.
"""

__all__ = [
    "HeaderGroup",
    "Classification",
]


@dataclass(frozen=True)
class HeaderGroup:
    """Named set of header cells.

    The label of each header is its own value (label_source="own_value").
    """
    name: str
    cells: tuple[Cell, ...] = ()

    def __post_init__(self) -> None:
        # 座標順に正規化 (決定性のため)
        object.__setattr__(self, "cells", tuple(sorted(self.cells)))

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)

    @property
    def is_empty(self) -> bool:
        return not self.cells

    def labels(self) -> list[str]:
        return [c.value.label() for c in self.cells]


@dataclass(frozen=True)
class Classification:
    """Result of classifying a grid into header groups and data cells."""
    header_groups: dict[str, HeaderGroup]
    data_cells: tuple[Cell, ...] = field(default_factory=tuple)

    def group(self, name: str) -> HeaderGroup:
        try:
            return self.header_groups[name]
        except KeyError:
            raise KeyError(f"unknown header group: {name!r}") from None
