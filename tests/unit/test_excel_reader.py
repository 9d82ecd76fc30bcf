from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from sheet_unpivot.excel.reader import WorkbookReadError, frame_to_rows, read_workbook
from sheet_unpivot.models.grid import ingest


def _make_excel(tmp_path: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


def test_frame_to_rows_replaces_nan_and_trims_trailing_rows():
    df = pd.DataFrame([["a", np.nan], [np.nan, 2.0], [np.nan, np.nan]])
    assert frame_to_rows(df) == [["a", None], [None, 2.0]]


def test_frame_to_rows_keeps_interior_empty_rows():
    df = pd.DataFrame([["a"], [None], ["b"]])
    rows = frame_to_rows(df)
    assert len(rows) == 3
    assert [c.coordinate for c in ingest(rows)] == [(1, 1), (3, 1)]


def test_read_workbook_keeps_sheet_row_numbers(temp_workdir: Path):
    excel = _make_excel(
        temp_workdir / "data", "cash.xlsx",
        {
            "Q1": [
                [None, "Jan", "Feb"],
                ["Sales", 1, 2],
            ]
        },
    )
    sheets = read_workbook(excel)
    assert list(sheets) == ["Q1"]
    grid = ingest(sheets["Q1"])
    assert grid.get(1, 2).value.label() == "Jan"
    assert grid.get(2, 1).value.label() == "Sales"
    assert grid.get(2, 3).value.label() == "2"


def test_read_workbook_target_sheets_filter(temp_workdir: Path):
    excel = _make_excel(
        temp_workdir / "data", "multi.xlsx",
        {
            "A": [["T"], [1]],
            "B": [["T"], [2]],
        },
    )
    assert set(read_workbook(excel)) == {"A", "B"}
    assert set(read_workbook(excel, target_sheets=["B"])) == {"B"}


def test_read_workbook_invalid_file(temp_workdir: Path):
    bogus = temp_workdir / "data" / "bogus.xlsx"
    bogus.write_bytes(b"nope")
    with pytest.raises(WorkbookReadError):
        read_workbook(bogus)
