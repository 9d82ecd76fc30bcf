from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Sequence

from ..models.cell import Cell
from ..models.direction import Direction
from ..models.grid import Grid
from ..models.header_group import HeaderGroup
from ..models.tidy_row import Attachment

"""Directional resolver (compass search).

For every data cell, find the governing header of one header group:

- NORTH: same column, nearest header strictly above.
- WEST: same row, nearest header strictly to the left.
- WEST_THEN_NORTH: walk west to the row's west wall (its minimal populated
  column), then north. The wall cell itself is on the west walk, so a header
  sitting at the wall of the data cell's own row governs it; otherwise the
  nearest header above wins. Headers at or west of the wall are candidates;
  nearest row first, then the one closest to the wall.

Headers are indexed once per call. NORTH / WEST answer each data cell with a
binary search on its line; WEST_THEN_NORTH sweeps the data cells in row order
over a prefix-max (Fenwick) tree of header columns. O((n + m) log m) overall.
Unmatched data cells yield no Attachment (inner-join exclusion).
"""

__all__ = [
    "DuplicateHeaderLineError",
    "HeaderIndex",
    "resolve",
]

logger = logging.getLogger(__name__)


class DuplicateHeaderLineError(Exception):
    """Raised when a header group has two headers on the same search line."""

    def __init__(self, group: str, axis: str, line: int, cells: Sequence[Cell]) -> None:
        coords = ", ".join(f"({c.row}, {c.col})" for c in cells)
        super().__init__(f"header group '{group}' has several headers in {axis} {line}: {coords}")
        self.group = group
        self.axis = axis  # "col" | "row"
        self.line = line
        self.cells = tuple(cells)


def _line_axis(direction: Direction) -> str:
    # NORTH / WEST_THEN_NORTH は列方向に北上、WEST は行方向
    return "row" if direction is Direction.WEST else "col"


class HeaderIndex:
    """Read-only search structure over one header group for one direction."""

    def __init__(self, group: HeaderGroup, direction: Direction) -> None:
        self.group = group
        self.direction = direction
        self.axis = _line_axis(direction)

        lines: dict[int, list[Cell]] = {}
        for cell in group.cells:
            key = cell.row if self.axis == "row" else cell.col
            lines.setdefault(key, []).append(cell)
        for key in sorted(lines):
            if len(lines[key]) > 1:
                raise DuplicateHeaderLineError(group.name, self.axis, key, lines[key])

        # line -> (sorted positions along the search axis, cells in the same order)
        self._lines: dict[int, tuple[list[int], list[Cell]]] = {}
        for key, cells in lines.items():
            if self.axis == "col":
                cells.sort(key=lambda c: c.row)
                self._lines[key] = ([c.row for c in cells], cells)
            else:
                cells.sort(key=lambda c: c.col)
                self._lines[key] = ([c.col for c in cells], cells)

        # WEST_THEN_NORTH 用: (row, col) 昇順の全ヘッダと列番号の昇順リスト
        self._by_row: list[Cell] = sorted(group.cells)
        self._cols: list[int] = sorted({c.col for c in self._by_row})

    def __len__(self) -> int:
        return len(self._by_row)

    def north_of(self, row: int, col: int) -> Cell | None:
        """Nearest header in ``col`` with header row < ``row``."""
        line = self._lines.get(col)
        if line is None:
            return None
        positions, cells = line
        i = bisect_left(positions, row)
        return cells[i - 1] if i > 0 else None

    def west_of(self, row: int, col: int) -> Cell | None:
        """Nearest header in ``row`` with header col < ``col``."""
        line = self._lines.get(row)
        if line is None:
            return None
        positions, cells = line
        i = bisect_left(positions, col)
        return cells[i - 1] if i > 0 else None

    def north_from_walls(self, queries: Sequence[tuple[int, int]]) -> list[Cell | None]:
        """Answer many (row, wall) queries at once.

        For each query: the header with the largest (row, col) among headers
        with row <= ``row`` and col <= ``wall``. Candidates on the data row
        itself come first (the west walk reaches them), then rows above; at
        equal row the header closest to the wall wins.

        Queries are swept in row order while headers are added, in row order,
        to a prefix-max tree over the header columns. Answers come back in
        query order.
        """
        answers: list[Cell | None] = [None] * len(queries)
        if not self._by_row:
            return answers
        size = len(self._cols)
        tree: list[Cell | None] = [None] * (size + 1)

        def add(cell: Cell) -> None:
            i = bisect_left(self._cols, cell.col) + 1
            while i <= size:
                best = tree[i]
                if best is None or best < cell:
                    tree[i] = cell
                i += i & -i

        def prefix_max(count: int) -> Cell | None:
            best: Cell | None = None
            while count > 0:
                node = tree[count]
                if node is not None and (best is None or best < node):
                    best = node
                count -= count & -count
            return best

        headers = self._by_row
        h = 0
        for q in sorted(range(len(queries)), key=lambda k: queries[k][0]):
            row, wall = queries[q]
            while h < len(headers) and headers[h].row <= row:
                add(headers[h])
                h += 1
            answers[q] = prefix_max(bisect_right(self._cols, wall))
        return answers

    def north_from_wall(self, row: int, wall: int) -> Cell | None:
        """Single-query form of :meth:`north_from_walls`."""
        return self.north_from_walls([(row, wall)])[0]

    def lookup(self, cell: Cell, wall: int | None = None) -> Cell | None:
        if self.direction is Direction.NORTH:
            return self.north_of(cell.row, cell.col)
        if self.direction is Direction.WEST:
            return self.west_of(cell.row, cell.col)
        return self.north_from_wall(cell.row, _edge(cell, wall))


def _edge(cell: Cell, wall: int | None) -> int:
    # west walk は壁か自セル列の手前まで
    return cell.col if wall is None else min(wall, cell.col)


def _row_walls(cells: Iterable[Cell]) -> dict[int, int]:
    walls: dict[int, int] = {}
    for c in cells:
        current = walls.get(c.row)
        if current is None or c.col < current:
            walls[c.row] = c.col
    return walls


def resolve(
    data_cells: Iterable[Cell],
    header_group: HeaderGroup,
    direction: Direction | str,
    grid: Grid | None = None,
) -> list[Attachment]:
    """Resolve every data cell against ``header_group``.

    Parameters
    ----------
    data_cells: cells to annotate (result keeps their order)
    header_group: candidate headers
    direction: search pattern
    grid: whole sheet, used for the west wall of WEST_THEN_NORTH. When omitted
        the data cells plus the header cells stand in for the sheet.

    Raises
    ------
    DuplicateHeaderLineError: two headers share the searched row/column
    """
    direction = Direction.parse(direction)
    cells = list(data_cells)
    index = HeaderIndex(header_group, direction)

    if direction is Direction.WEST_THEN_NORTH:
        walls: dict[int, int]
        if grid is not None:
            walls = {r: w for r in {c.row for c in cells} if (w := grid.west_wall(r)) is not None}
        else:
            walls = _row_walls([*cells, *header_group.cells])
        headers = index.north_from_walls([(c.row, _edge(c, walls.get(c.row))) for c in cells])
    else:
        headers = [index.lookup(c) for c in cells]

    attachments = [
        Attachment(cell, header, direction)
        for cell, header in zip(cells, headers)
        if header is not None
    ]

    unmatched = len(cells) - len(attachments)
    logger.debug(
        "resolve group=%s direction=%s headers=%d data=%d matched=%d unmatched=%d",
        header_group.name,
        direction.value,
        len(index),
        len(cells),
        len(attachments),
        unmatched,
    )
    return attachments
