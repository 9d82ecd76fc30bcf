from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import pandas as pd

from ..models.cell import Cell
from ..models.direction import Direction
from ..models.grid import Grid
from ..models.header_group import HeaderGroup
from ..models.tidy_row import RESERVED_FIELDS, TidyRow
from .resolver import resolve

"""Join / flatten engine.

Runs one directional resolution per declared (header group, direction,
output field) and inner-joins the attachment sets on data-cell coordinate.
A data cell becomes a TidyRow only when every join found a header for it.
"""

__all__ = [
    "JoinSpec",
    "JoinResult",
    "combine",
    "join_cells",
    "to_frame",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JoinSpec:
    """One header group to attach, how to find it and where its label goes."""
    header_group: HeaderGroup
    direction: Direction
    output_field_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction.parse(self.direction))


@dataclass(frozen=True)
class JoinResult:
    rows: list[TidyRow]
    data_cells: int  # 入力データセル数
    dropped: int  # いずれかの join で未解決となったセル数
    unmatched_by_field: dict[str, int] = field(default_factory=dict)


JoinLike = JoinSpec | tuple[HeaderGroup, Direction | str, str]


def _as_specs(joins: Iterable[JoinLike]) -> list[JoinSpec]:
    # (header_group, direction, output_field_name) のタプルも受け付ける
    return [j if isinstance(j, JoinSpec) else JoinSpec(*j) for j in joins]


def _check_field_names(joins: Sequence[JoinSpec]) -> None:
    seen: set[str] = set()
    for spec in joins:
        name = spec.output_field_name
        if not name:
            raise ValueError(f"header group '{spec.header_group.name}' has an empty output field name")
        if name in RESERVED_FIELDS:
            raise ValueError(f"output field name '{name}' is reserved ({', '.join(sorted(RESERVED_FIELDS))})")
        if name in seen:
            raise ValueError(f"output field name '{name}' is declared twice")
        seen.add(name)


def join_cells(
    data_cells: Iterable[Cell],
    joins: Iterable[JoinLike],
    grid: Grid | None = None,
) -> JoinResult:
    """Multi-way inner join of data cells with their resolved headers.

    Returns the surviving rows in (row, col) order together with drop
    diagnostics. Unmatched cells are never an error. ``joins`` holds
    JoinSpecs or plain (header_group, direction, output_field_name) tuples.
    """
    joins = _as_specs(joins)
    _check_field_names(joins)
    cells = sorted(data_cells)
    if not joins:
        logger.debug("no joins declared; %d data cells produce no rows", len(cells))
        return JoinResult(rows=[], data_cells=len(cells), dropped=len(cells))

    labels: list[dict[tuple[int, int], str]] = []
    unmatched: dict[str, int] = {}
    for spec in joins:
        attachments = resolve(cells, spec.header_group, spec.direction, grid=grid)
        by_coord = {a.data_cell.coordinate: a.label for a in attachments}
        labels.append(by_coord)
        unmatched[spec.output_field_name] = len(cells) - len(by_coord)

    rows: list[TidyRow] = []
    for cell in cells:
        key = cell.coordinate
        if not all(key in m for m in labels):
            continue
        headers = tuple((spec.output_field_name, m[key]) for spec, m in zip(joins, labels))
        rows.append(TidyRow(row=cell.row, col=cell.col, value=cell.value, headers=headers))

    dropped = len(cells) - len(rows)
    if dropped:
        logger.debug("join dropped=%d of data_cells=%d unmatched=%s", dropped, len(cells), unmatched)
    return JoinResult(rows=rows, data_cells=len(cells), dropped=dropped, unmatched_by_field=unmatched)


def combine(
    data_cells: Iterable[Cell],
    joins: Iterable[JoinLike],
    grid: Grid | None = None,
) -> list[TidyRow]:
    """Tidy rows for ``data_cells`` (see :func:`join_cells`)."""
    return join_cells(data_cells, joins, grid=grid).rows


def to_frame(rows: Sequence[TidyRow], fields: Sequence[str] | None = None) -> pd.DataFrame:
    """TidyRows as a DataFrame: row, col, value, then one column per field.

    ``fields`` fixes the header columns (useful when ``rows`` is empty);
    otherwise every field seen in ``rows`` is used, in first-seen order.
    Rows lacking a field (e.g. exception-track rows) are left missing there.
    """
    if fields is None:
        fields = list(dict.fromkeys(name for r in rows for name in r.fields))
    columns = ["row", "col", "value", *fields]
    records = [r.as_dict() for r in rows]
    return pd.DataFrame.from_records(records, columns=columns)
