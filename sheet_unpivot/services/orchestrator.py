from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import ConfigError, check_config
from ..excel.reader import WorkbookReadError, read_workbook
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..logging.init import sheet_context
from ..models.config_models import HeaderGroupRule, PipelineConfig
from ..models.grid import Grid, MalformedInputError, ingest
from ..models.processing_result import PipelineResult, ProcessingResult, SheetStat, TrackStats
from ..models.tidy_row import TidyRow
from .classifier import AmbiguousHeaderError, classify, partition_exception_rows
from .join import JoinSpec, join_cells
from .progress import ProgressTracker
from .resolver import DuplicateHeaderLineError

"""Pipeline orchestration.

run_pipeline() handles one grid:
1. ingest raw rows (origin offsets from config)
2. split off exception rows (summary / total rows that are header and data)
3. main track: remainder + always-keep rows -> classify -> join
4. exception track: exception rows (+ always-keep rows) -> classify -> join

The exception rows never enter the main classification: they carry a label
and their own numbers at once, which one header/data split cannot express.

process_all() / process_workbook() run the pipeline over many sheets; each
sheet is independent, and a structural error fails only that sheet.
"""

logger = logging.getLogger(__name__)

# 構造エラー: パイプライン実行を即時中断 (部分結果なし)
STRUCTURAL_ERRORS = (MalformedInputError, AmbiguousHeaderError, DuplicateHeaderLineError)


class ProcessingError(Exception):
    """Base exception for batch-level processing errors."""
    pass


def _coerce_grid(source: Grid | Iterable[Sequence[Any]], config: PipelineConfig) -> Grid:
    if isinstance(source, Grid):
        # Grid は座標確定済み (offset 適用しない)
        return source
    return ingest(
        source,
        origin_row_offset=config.origin_row_offset,
        origin_col_offset=config.origin_col_offset,
    )


def _run_track(grid: Grid, rules: Sequence[HeaderGroupRule], track: str) -> tuple[list[TidyRow], TrackStats]:
    classification = classify(grid, rules)
    joins = [
        JoinSpec(classification.group(rule.name), rule.direction, rule.field_name)
        for rule in rules
    ]
    result = join_cells(classification.data_cells, joins, grid=grid)
    stats = TrackStats(
        data_cells=result.data_cells,
        rows=len(result.rows),
        dropped=result.dropped,
        unmatched_by_field=dict(result.unmatched_by_field),
    )
    logger.debug(
        "track=%s data_cells=%d rows=%d dropped=%d unmatched=%s",
        track,
        stats.data_cells,
        stats.rows,
        stats.dropped,
        stats.unmatched_by_field,
    )
    return result.rows, stats


def run_pipeline(source: Grid | Iterable[Sequence[Any]], config: PipelineConfig) -> PipelineResult:
    """Unpivot one grid according to ``config``.

    Args:
        source: raw rows (row-major values) or an already built Grid
        config: pipeline configuration

    Returns:
        PipelineResult with main / exception rows and drop diagnostics

    Raises:
        ConfigError: invalid configuration values
        MalformedInputError, AmbiguousHeaderError, DuplicateHeaderLineError:
            structural problems; no partial result is produced
    """
    check_config(config)
    grid = _coerce_grid(source, config)

    if config.has_exception_track:
        exception_grid, remainder = partition_exception_rows(
            grid, config.exception_labels, config.always_keep_rows
        )
        # 共有ヘッダ行 (例: 月見出し行) は両トラックで再利用
        main_grid = remainder.merge(grid.select_rows(config.always_keep_rows))
    else:
        exception_grid, main_grid = None, grid

    main_rows, main_stats = _run_track(main_grid, config.header_groups, "main")

    exception_rows: list[TidyRow] = []
    exception_stats: TrackStats | None = None
    if exception_grid is not None:
        exception_rows, exception_stats = _run_track(
            exception_grid, config.exception_header_groups, "exception"
        )

    rows = main_rows + exception_rows if config.output == "concat" else list(main_rows)
    if not main_rows and not exception_rows:
        logger.warning("pipeline produced no rows (cells=%d)", len(grid))
    return PipelineResult(
        rows=rows,
        main_rows=main_rows,
        exception_rows=exception_rows,
        main_stats=main_stats,
        exception_stats=exception_stats,
    )


def _error_record(sheet: str, exc: Exception) -> ErrorRecord:
    row: int | None = None
    col: int | None = None
    if isinstance(exc, MalformedInputError):
        error_type = "MALFORMED_INPUT"
        row, col = exc.row, exc.col
    elif isinstance(exc, AmbiguousHeaderError):
        error_type = "AMBIGUOUS_HEADER"
        row, col = exc.row, exc.col
    elif isinstance(exc, DuplicateHeaderLineError):
        error_type = "DUPLICATE_HEADER_LINE"
        # 衝突した 2 個目のヘッダ座標
        row, col = exc.cells[-1].row, exc.cells[-1].col
    else:
        return ErrorRecord.create(
            sheet=sheet, row=None, col=None, error_type="UNEXPECTED_ERROR",
            message=f"{type(exc).__name__}: {exc}",
        )
    return ErrorRecord.create(sheet=sheet, row=row, col=col, error_type=error_type, message=str(exc))


def process_all(
    sheets: Mapping[str, Grid | Iterable[Sequence[Any]]],
    config: PipelineConfig,
) -> ProcessingResult:
    """Run the pipeline over every sheet (mapping order).

    Any error raised while a sheet runs fails only that sheet (structural
    errors with their coordinate, anything else as UNEXPECTED_ERROR); the
    other sheets still run. Failed sheets are reported as ErrorRecords and SheetStats.

    Raises:
        ProcessingError: the configuration itself is invalid
    """
    start_time = datetime.now(UTC)
    try:
        check_config(config)
    except ConfigError as e:
        raise ProcessingError(f"Invalid configuration: {e}") from e

    error_log = ErrorLogBuffer()
    sheet_stats: list[SheetStat] = []
    results: dict[str, PipelineResult] = {}
    success_count = 0
    failed_count = 0
    total_rows = 0
    total_dropped = 0

    with ProgressTracker(len(sheets)) as progress:
        for sheet_name, source in sheets.items():
            progress.start_sheet(sheet_name)
            sheet_start = datetime.now(UTC)
            try:
                with sheet_context(sheet_name):
                    result = run_pipeline(source, config)
            except Exception as e:
                elapsed = (datetime.now(UTC) - sheet_start).total_seconds()
                failed_count += 1
                error_log.append(_error_record(sheet_name, e))
                if isinstance(e, STRUCTURAL_ERRORS):
                    logger.error("[%s] failed: %s", sheet_name, e)
                else:
                    # 想定外 (例: ユーザ定義 selector の例外) もシート単位で失敗扱い
                    logger.exception("[%s] unexpected error: %s", sheet_name, e)
                sheet_stats.append(
                    SheetStat(sheet_name, "failed", rows=0, dropped=0, elapsed_seconds=elapsed, error=str(e))
                )
                progress.finish_sheet(success=False)
                continue

            elapsed = (datetime.now(UTC) - sheet_start).total_seconds()
            success_count += 1
            results[sheet_name] = result
            total_rows += len(result.rows)
            total_dropped += result.dropped
            logger.info("[%s] rows=%d dropped=%d", sheet_name, len(result.rows), result.dropped)
            sheet_stats.append(
                SheetStat(sheet_name, "success", rows=len(result.rows), dropped=result.dropped,
                          elapsed_seconds=elapsed)
            )
            progress.finish_sheet(success=True, rows=len(result.rows))

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_sheets=success_count,
        failed_sheets=failed_count,
        total_rows=total_rows,
        dropped_cells=total_dropped,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        sheet_stats=sheet_stats,
        results=results,
        errors=error_log.records,
    )


def process_workbook(
    path: Path,
    config: PipelineConfig,
    target_sheets: Iterable[str] | None = None,
) -> ProcessingResult:
    """Read a workbook and run :func:`process_all` over its sheets.

    Raises:
        ProcessingError: the file is missing or cannot be read
    """
    if not path.exists():
        raise ProcessingError(f"Workbook not found: {path}")
    if target_sheets is not None:
        target_sheets = [str(s) for s in target_sheets]
    try:
        sheets = read_workbook(path, target_sheets=target_sheets)
    except WorkbookReadError as e:
        raise ProcessingError(str(e)) from e
    logger.info("Processing workbook: %s (sheets=%d)", path.name, len(sheets))
    result = process_all(sheets, config)
    if target_sheets is None:
        return result
    requested = set(target_sheets)
    missing = sorted(requested - set(sheets))
    if missing:
        logger.warning("sheets not found in %s: %s", path.name, ", ".join(missing))
    return replace(result, requested_sheets=len(requested))
