from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..models.cell import Cell, ScalarKind

"""Declarative header selectors.

Configuration files cannot hold Python callables, so header groups declared
in YAML select their cells with a SelectorSpec. Every condition present must
hold for a cell to match; absent conditions do not restrict.
"""

__all__ = [
    "SelectorSpec",
    "selector_from_mapping",
]

_KINDS = {"text": ScalarKind.TEXT, "number": ScalarKind.NUMBER, "boolean": ScalarKind.BOOLEAN}


@dataclass(frozen=True)
class SelectorSpec:
    rows: frozenset[int] | None = None
    cols: frozenset[int] | None = None
    min_row: int | None = None
    max_row: int | None = None
    min_col: int | None = None
    max_col: int | None = None
    kinds: frozenset[ScalarKind] | None = None
    values: frozenset[str] | None = None  # 完全一致 (前後空白除去後)
    exclude_values: frozenset[str] | None = None

    def __call__(self, cell: Cell) -> bool:
        if self.rows is not None and cell.row not in self.rows:
            return False
        if self.cols is not None and cell.col not in self.cols:
            return False
        if self.min_row is not None and cell.row < self.min_row:
            return False
        if self.max_row is not None and cell.row > self.max_row:
            return False
        if self.min_col is not None and cell.col < self.min_col:
            return False
        if self.max_col is not None and cell.col > self.max_col:
            return False
        if self.kinds is not None and cell.value.kind not in self.kinds:
            return False
        label = cell.value.label().strip()
        if self.values is not None and label not in self.values:
            return False
        if self.exclude_values is not None and label in self.exclude_values:
            return False
        return True


def selector_from_mapping(data: Mapping[str, Any]) -> SelectorSpec:
    """Build a SelectorSpec from a config mapping (keys as in the schema)."""
    unknown = set(data) - set(SelectorSpec.__dataclass_fields__)
    if unknown:
        raise ValueError(f"unknown selector keys: {sorted(unknown)}")

    def _ints(key: str) -> frozenset[int] | None:
        v = data.get(key)
        return None if v is None else frozenset(int(x) for x in v)

    def _strs(key: str) -> frozenset[str] | None:
        v = data.get(key)
        return None if v is None else frozenset(str(x).strip() for x in v)

    kinds = data.get("kinds")
    if kinds is not None:
        try:
            kind_set: frozenset[ScalarKind] | None = frozenset(_KINDS[k] for k in kinds)
        except KeyError as e:
            raise ValueError(f"unknown selector kind: {e.args[0]!r}") from None
    else:
        kind_set = None

    return SelectorSpec(
        rows=_ints("rows"),
        cols=_ints("cols"),
        min_row=data.get("min_row"),
        max_row=data.get("max_row"),
        min_col=data.get("min_col"),
        max_col=data.get("max_col"),
        kinds=kind_set,
        values=_strs("values"),
        exclude_values=_strs("exclude_values"),
    )
