from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.cell import Cell
from ..models.config_models import HeaderRule
from ..models.grid import Grid
from ..models.header_group import Classification, HeaderGroup

"""Header classifier.

Splits a grid into named header groups and data cells using caller-supplied
selectors, and isolates exception rows (summary / total rows that act as
header and data at once) so they can be resolved in a separate pass.
"""

__all__ = [
    "AmbiguousHeaderError",
    "classify",
    "partition_exception_rows",
]

logger = logging.getLogger(__name__)

SUPPORTED_LABEL_SOURCES = {"own_value"}


class AmbiguousHeaderError(Exception):
    """Raised when one cell matches the selectors of several header groups."""

    def __init__(self, row: int, col: int, groups: Sequence[str]) -> None:
        super().__init__(
            f"cell ({row}, {col}) matches more than one header group: {', '.join(groups)}"
        )
        self.row = row
        self.col = col
        self.groups = tuple(groups)


def classify(grid: Grid | Iterable[Cell], rules: Sequence[HeaderRule]) -> Classification:
    """Partition cells into header groups and data cells.

    Parameters
    ----------
    grid: cells to classify (coordinates are kept as-is)
    rules: one rule per header group; selectors must be disjoint

    Returns
    -------
    Classification with one (possibly empty) HeaderGroup per rule and the
    remaining cells as data cells, both in (row, col) order.

    Raises
    ------
    AmbiguousHeaderError: a cell matched more than one selector
    ValueError: duplicate rule names or unsupported label_source
    """
    names = [r.name for r in rules]
    dup = sorted({n for n in names if names.count(n) > 1})
    if dup:
        raise ValueError(f"duplicate header group names: {dup}")
    for rule in rules:
        if rule.label_source not in SUPPORTED_LABEL_SOURCES:
            raise ValueError(
                f"header group '{rule.name}': unsupported label_source {rule.label_source!r}"
            )

    members: dict[str, list[Cell]] = {r.name: [] for r in rules}
    data_cells: list[Cell] = []
    for cell in grid:
        matched = [r.name for r in rules if r.selector(cell)]
        if len(matched) > 1:
            raise AmbiguousHeaderError(cell.row, cell.col, matched)
        if matched:
            members[matched[0]].append(cell)
        else:
            data_cells.append(cell)

    groups = {name: HeaderGroup(name, tuple(cells)) for name, cells in members.items()}
    for name, group in groups.items():
        if group.is_empty:
            logger.warning("header group=%s matched no cells", name)
    logger.debug(
        "classified headers=%s data_cells=%d",
        {n: len(g) for n, g in groups.items()},
        len(data_cells),
    )
    return Classification(header_groups=groups, data_cells=tuple(sorted(data_cells)))


def partition_exception_rows(
    grid: Grid,
    labels: Iterable[str],
    always_keep_rows: Iterable[int] = (),
) -> tuple[Grid, Grid]:
    """Split ``grid`` into (exception rows, remainder).

    A row is an exception row when one of its text cells equals (after
    stripping) one of ``labels``. ``always_keep_rows`` present in the grid
    join the exception side (e.g. the month header row). Every populated row
    ends up in exactly one of the two grids; coordinates are preserved.
    """
    wanted = {s.strip() for s in labels}
    matched_rows: set[int] = set()
    if wanted:
        for cell in grid:
            text = cell.value.text()
            if text is not None and text in wanted:
                matched_rows.add(cell.row)
    populated = set(grid.rows)
    keep = populated & set(always_keep_rows)
    exception_rows = matched_rows | keep
    logger.debug(
        "exception rows=%s (labels=%d always_keep=%s)",
        sorted(exception_rows),
        len(wanted),
        sorted(keep),
    )
    return grid.select_rows(exception_rows), grid.drop_rows(exception_rows)
