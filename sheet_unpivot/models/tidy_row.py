from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .cell import Cell, Scalar
from .direction import Direction

"""Attachment and TidyRow output models.

Both are derived values: they copy coordinates and labels out of the grid and
keep no reference to it.
"""

__all__ = [
    "Attachment",
    "TidyRow",
    "RESERVED_FIELDS",
]

# TidyRow の固定列 (join の出力列名として使用不可)
RESERVED_FIELDS = frozenset({"row", "col", "value"})


@dataclass(frozen=True)
class Attachment:
    """A data cell paired with its governing header under one direction."""
    data_cell: Cell
    header_cell: Cell
    direction: Direction

    @property
    def label(self) -> str:
        return self.header_cell.value.label()


@dataclass(frozen=True)
class TidyRow:
    """One normalized output row.

    Attributes:
        row: source row of the data cell
        col: source column of the data cell
        value: the data cell's Scalar (no numeric coercion)
        headers: (field name, header label) pairs in join declaration order
    """
    row: int
    col: int
    value: Scalar
    headers: tuple[tuple[str, str], ...] = ()

    def __getitem__(self, field_name: str) -> Any:
        if field_name == "row":
            return self.row
        if field_name == "col":
            return self.col
        if field_name == "value":
            return self.value.value
        for name, label in self.headers:
            if name == field_name:
                return label
        raise KeyError(field_name)

    @property
    def fields(self) -> list[str]:
        return [name for name, _ in self.headers]

    def as_dict(self) -> dict[str, Any]:
        """Flat record: row, col, value (plain python value) and one key per join."""
        out: dict[str, Any] = {"row": self.row, "col": self.col, "value": self.value.value}
        out.update(self.headers)
        return out
