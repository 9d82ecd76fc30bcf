from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any

from .cell import Cell, Scalar, UnsupportedValueError

"""Sparse cell grid.

The Grid keeps absolute sheet coordinates for every cell. Sub-grids returned
by filter() / select_rows() / drop_rows() never renumber rows or columns:
directional header search depends on the original positions.
"""

__all__ = [
    "Grid",
    "MalformedInputError",
    "ingest",
]


class MalformedInputError(Exception):
    """Raised when raw rows cannot be turned into a consistent grid."""

    def __init__(self, message: str, row: int | None = None, col: int | None = None) -> None:
        super().__init__(message)
        self.row = row
        self.col = col


class Grid:
    """Immutable, ordered (row, col) collection of non-empty cells."""

    __slots__ = ("_cells", "_by_coord", "_row_walls")

    def __init__(self, cells: Iterable[Cell] = ()) -> None:
        by_coord: dict[tuple[int, int], Cell] = {}
        seen: set[tuple[int, int]] = set()
        for cell in cells:
            if cell.row < 1 or cell.col < 1:
                raise MalformedInputError(
                    f"cell coordinates must be >= 1: ({cell.row}, {cell.col})", cell.row, cell.col
                )
            if cell.coordinate in seen:
                raise MalformedInputError(
                    f"duplicate cell at ({cell.row}, {cell.col})", cell.row, cell.col
                )
            seen.add(cell.coordinate)
            if cell.value.is_empty:
                continue
            by_coord[cell.coordinate] = cell
        self._cells: tuple[Cell, ...] = tuple(sorted(by_coord.values()))
        self._by_coord = by_coord
        # 行ごとの最小列 (west wall)
        walls: dict[int, int] = {}
        for cell in self._cells:
            walls.setdefault(cell.row, cell.col)
        self._row_walls = walls

    @classmethod
    def from_cells(cls, cells: Iterable[Cell]) -> Grid:
        return cls(cells)

    @classmethod
    def _trusted(cls, cells: Iterable[Cell]) -> Grid:
        # cells がすでに検証済みの Grid 由来である場合のみ使用
        grid = cls.__new__(cls)
        grid._cells = tuple(cells)
        grid._by_coord = {c.coordinate: c for c in grid._cells}
        walls: dict[int, int] = {}
        for cell in grid._cells:
            walls.setdefault(cell.row, cell.col)
        grid._row_walls = walls
        return grid

    # --- collection protocol -------------------------------------------------
    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Cell):
            return item.coordinate in self._by_coord
        if isinstance(item, tuple):
            return item in self._by_coord
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._cells == other._cells and all(
            a.value == b.value for a, b in zip(self._cells, other._cells)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:  # pragma: no cover (debug helper)
        return f"Grid(cells={len(self._cells)}, rows={len(self._row_walls)})"

    # --- queries -------------------------------------------------------------
    @property
    def cells(self) -> tuple[Cell, ...]:
        return self._cells

    @property
    def rows(self) -> list[int]:
        """Populated row numbers in ascending order."""
        return sorted(self._row_walls)

    @property
    def cols(self) -> list[int]:
        """Populated column numbers in ascending order."""
        return sorted({c.col for c in self._cells})

    def get(self, row: int, col: int) -> Cell | None:
        return self._by_coord.get((row, col))

    def row_cells(self, row: int) -> list[Cell]:
        return [c for c in self._cells if c.row == row]

    def west_wall(self, row: int) -> int | None:
        """Minimal populated column in ``row`` (None when the row is empty)."""
        return self._row_walls.get(row)

    # --- sub-grids (coordinates preserved) -----------------------------------
    def filter(self, predicate: Callable[[Cell], bool]) -> Grid:
        return Grid._trusted(c for c in self._cells if predicate(c))

    def select_rows(self, rows: Iterable[int]) -> Grid:
        keep = set(rows)
        return self.filter(lambda c: c.row in keep)

    def drop_rows(self, rows: Iterable[int]) -> Grid:
        drop = set(rows)
        return self.filter(lambda c: c.row not in drop)

    def merge(self, other: Grid) -> Grid:
        """Union of two sub-grids of the same sheet.

        Cells present in both must be identical; a conflicting value at the
        same coordinate is a MalformedInputError.
        """
        merged = dict(self._by_coord)
        for cell in other:
            existing = merged.get(cell.coordinate)
            if existing is not None and existing.value != cell.value:
                raise MalformedInputError(
                    f"conflicting cells at ({cell.row}, {cell.col})", cell.row, cell.col
                )
            merged[cell.coordinate] = cell
        return Grid._trusted(sorted(merged.values()))


def ingest(
    raw_rows: Iterable[Sequence[Any]],
    origin_row_offset: int = 0,
    origin_col_offset: int = 0,
    ncols: int | None = None,
) -> Grid:
    """Build a Grid from raw row-major values.

    Raw row ``i`` / item ``j`` (0-based) becomes cell
    ``(origin_row_offset + i + 1, origin_col_offset + j + 1)``. Offsets keep
    absolute sheet coordinates when leading rows/cols were skipped by the
    reader. Empty values are discarded; short rows are implicitly padded.

    Raises
    ------
    MalformedInputError: negative offsets, a row that is not a sequence, a row
        longer than ``ncols`` or a value without a Scalar representation
    """
    if origin_row_offset < 0 or origin_col_offset < 0:
        raise MalformedInputError(
            f"origin offsets must be >= 0 (row={origin_row_offset}, col={origin_col_offset})"
        )
    if ncols is not None and ncols < 0:
        raise MalformedInputError(f"ncols must be >= 0: {ncols}")

    cells: list[Cell] = []
    for i, raw in enumerate(raw_rows):
        row = origin_row_offset + i + 1
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
            raise MalformedInputError(
                f"row {row} is not a sequence of cell values: {type(raw).__name__}", row
            )
        if ncols is not None and len(raw) > ncols:
            raise MalformedInputError(
                f"row {row} has {len(raw)} values, more than the declared {ncols} columns", row
            )
        for j, value in enumerate(raw):
            col = origin_col_offset + j + 1
            try:
                scalar = Scalar.of(value)
            except UnsupportedValueError as e:
                raise MalformedInputError(f"({row}, {col}): {e}", row, col) from e
            if scalar.is_empty:
                continue
            cells.append(Cell(row, col, scalar))
    return Grid._trusted(cells)
