from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .error_record import ErrorRecord
from .tidy_row import TidyRow

"""Processing result models for the unpivoting pipeline.

PipelineResult is the outcome of one sheet; ProcessingResult aggregates a
batch of sheets and feeds the SUMMARY line.
"""


@dataclass(frozen=True)
class TrackStats:
    """Join diagnostics for one track (main or exception)."""
    data_cells: int = 0  # join 対象データセル数
    rows: int = 0  # 生成 TidyRow 数
    dropped: int = 0  # inner join で除外されたセル数
    unmatched_by_field: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PipelineResult:
    """Tidy rows produced for one grid.

    ``rows`` follows the configured output mode: main + exception rows for
    "concat", main rows only for "separate". Both tracks stay reachable.
    """
    rows: list[TidyRow]
    main_rows: list[TidyRow]
    exception_rows: list[TidyRow]
    main_stats: TrackStats
    exception_stats: TrackStats | None = None

    @property
    def dropped(self) -> int:
        extra = self.exception_stats.dropped if self.exception_stats else 0
        return self.main_stats.dropped + extra

    @property
    def total_rows(self) -> int:
        return len(self.main_rows) + len(self.exception_rows)


@dataclass(frozen=True)
class SheetStat:
    """Per-sheet processing statistics."""
    sheet_name: str
    status: str  # success/failed
    rows: int  # 出力 TidyRow 数
    dropped: int  # 除外セル数
    elapsed_seconds: float
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of a batch run (feeds the SUMMARY line)."""
    success_sheets: int
    failed_sheets: int
    total_rows: int
    dropped_cells: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    sheet_stats: list[SheetStat] | None = None
    results: dict[str, PipelineResult] = field(default_factory=dict)
    errors: list[ErrorRecord] = field(default_factory=list)
    requested_sheets: int | None = None  # None: 入力シート数 = 処理シート数

    @property
    def total_sheets(self) -> int:
        """Sheets processed (success + failed)."""
        return self.success_sheets + self.failed_sheets

    @property
    def sheets_requested(self) -> int:
        return self.total_sheets if self.requested_sheets is None else self.requested_sheets
