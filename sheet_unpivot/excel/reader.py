from __future__ import annotations

import zipfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

"""Workbook reader adapter.

Turns workbook sheets into raw row-major values for sheet_unpivot.models.grid.ingest.
Sheets are read without a header row (header=None) so every spreadsheet row
keeps its position; NaN becomes None. Styles, merged ranges and formulas are
not interpreted: the cached cell value is all the engine sees.
"""

__all__ = [
    "WorkbookReadError",
    "read_workbook",
    "frame_to_rows",
]


class WorkbookReadError(Exception):
    """Raised when a workbook cannot be opened or parsed."""


def frame_to_rows(df: pd.DataFrame) -> list[list[Any]]:
    """Row-major python values of ``df`` with NaN / NaT replaced by None.

    Trailing empty rows are dropped; interior empty rows are kept so row
    numbers stay aligned with the sheet.
    """
    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        rows.append([None if pd.isna(v) else v for v in raw])
    while rows and all(v is None for v in rows[-1]):
        rows.pop()
    return rows


def read_workbook(
    path: Path, target_sheets: Iterable[str] | None = None
) -> dict[str, list[list[Any]]]:
    """Read an Excel file returning raw rows keyed by sheet name.

    Parameters
    ----------
    path: Excel ファイルパス
    target_sheets: 対象シート制限 (None なら全シート)
    """
    wanted = None if target_sheets is None else {str(s) for s in target_sheets}
    try:
        xls = pd.ExcelFile(path)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise WorkbookReadError(f"cannot open workbook {path}: {e}") from e
    out: dict[str, list[list[Any]]] = {}
    with xls:
        for name in xls.sheet_names:
            if wanted is not None and str(name) not in wanted:
                continue
            # ヘッダなしで生読み (行番号 = シート行番号)
            df = xls.parse(name, header=None)
            out[str(name)] = frame_to_rows(df)
    return out
