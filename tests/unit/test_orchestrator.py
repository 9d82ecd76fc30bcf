from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from sheet_unpivot.config.loader import ConfigError
from sheet_unpivot.config.selectors import SelectorSpec
from sheet_unpivot.models.config_models import HeaderGroupRule, PipelineConfig
from sheet_unpivot.models.direction import Direction
from sheet_unpivot.models.error_record import ERROR_TYPES
from sheet_unpivot.models.grid import MalformedInputError, ingest
from sheet_unpivot.models.processing_result import ProcessingResult
from sheet_unpivot.services.classifier import AmbiguousHeaderError
from sheet_unpivot.services.orchestrator import (
    ProcessingError,
    process_all,
    process_workbook,
    run_pipeline,
)
from sheet_unpivot.services.resolver import DuplicateHeaderLineError


def _simple_config(**overrides) -> PipelineConfig:
    config = PipelineConfig(
        header_groups=(
            HeaderGroupRule(name="item", selector=SelectorSpec(cols=frozenset({1})), direction=Direction.WEST),
            HeaderGroupRule(name="month", selector=SelectorSpec(rows=frozenset({1})), direction=Direction.NORTH),
        )
    )
    return replace(config, **overrides)


def test_run_pipeline_without_exception_track():
    raw = [[None, "Jan", "Feb"], ["Sales", 1, 2]]
    result = run_pipeline(raw, _simple_config())
    assert [(r["item"], r["month"], r.value.value) for r in result.rows] == [
        ("Sales", "Jan", 1),
        ("Sales", "Feb", 2),
    ]
    assert result.exception_rows == []
    assert result.exception_stats is None
    assert result.dropped == 0


def test_run_pipeline_applies_origin_offsets():
    raw = [[None, "Jan"], ["Sales", 1]]
    config = _simple_config(origin_row_offset=3)
    # 行番号は 4 から: month セレクタ (row 1) は何も選ばない
    result = run_pipeline(raw, config)
    assert result.rows == []
    assert result.main_stats.data_cells == 2


def test_run_pipeline_accepts_prebuilt_grid():
    grid = ingest([[None, "Jan"], ["Sales", 1]], origin_row_offset=3)
    # Grid はそのまま使用 (offset は再適用しない)
    result = run_pipeline(grid, _simple_config(origin_row_offset=10))
    assert result.main_stats.data_cells == 2


def test_run_pipeline_cash_flow_tracks(make_cash_flow_rows, make_cash_flow_config):
    result = run_pipeline(make_cash_flow_rows(), make_cash_flow_config())
    assert len(result.main_rows) == 26
    assert len(result.exception_rows) == 13
    assert len(result.rows) == 39
    assert result.main_stats.dropped == 0
    first = result.exception_rows[0]
    assert (first["main_header"], first["month"], first.value.value) == ("Total Cash Inflows", "Jan", 110)


def test_run_pipeline_separate_output(make_cash_flow_rows, make_cash_flow_config):
    result = run_pipeline(make_cash_flow_rows(), make_cash_flow_config(output="separate"))
    assert result.rows == result.main_rows
    assert len(result.exception_rows) == 13


def test_run_pipeline_structural_errors_propagate():
    dup_config = _simple_config(
        header_groups=(
            HeaderGroupRule(name="month", selector=SelectorSpec(cols=frozenset({2})), direction=Direction.NORTH),
        )
    )
    with pytest.raises(DuplicateHeaderLineError):
        run_pipeline([[None, "Jan"], [None, "Feb"], [None, 1]], dup_config)

    ambiguous = _simple_config(
        header_groups=(
            HeaderGroupRule(name="a", selector=lambda c: True, direction=Direction.NORTH),
            HeaderGroupRule(name="b", selector=lambda c: True, direction=Direction.WEST),
        )
    )
    with pytest.raises(AmbiguousHeaderError):
        run_pipeline([["x"]], ambiguous)

    with pytest.raises(MalformedInputError):
        run_pipeline(["not a row"], _simple_config())


def test_run_pipeline_rejects_invalid_config():
    with pytest.raises(ConfigError):
        run_pipeline([["x"]], _simple_config(output="sideways"))
    with pytest.raises(ConfigError):
        run_pipeline([["x"]], _simple_config(origin_col_offset=-2))
    with pytest.raises(ConfigError):
        run_pipeline([["x"]], _simple_config(exception_labels=frozenset({"TOTAL"})))


def test_process_all_isolates_failing_sheet():
    sheets = {
        "good": [[None, "Jan"], ["Sales", 1]],
        "bad": [[None, "Jan"], ["Sales", object()]],
        "also_good": [[None, "Feb"], ["Costs", 2]],
    }
    result = process_all(sheets, _simple_config())
    assert isinstance(result, ProcessingResult)
    assert result.success_sheets == 2
    assert result.failed_sheets == 1
    assert result.total_rows == 2
    assert set(result.results) == {"good", "also_good"}
    assert [s.status for s in result.sheet_stats] == ["success", "failed", "success"]

    (record,) = result.errors
    assert record.sheet == "bad"
    assert record.error_type == "MALFORMED_INPUT"
    assert (record.row, record.col) == (2, 2)


def test_process_all_records_duplicate_header_coordinate():
    config = _simple_config(
        header_groups=(
            HeaderGroupRule(name="month", selector=SelectorSpec(cols=frozenset({2})), direction=Direction.NORTH),
        )
    )
    result = process_all({"s": [[None, "Jan"], [None, "Feb"]]}, config)
    (record,) = result.errors
    assert record.error_type == "DUPLICATE_HEADER_LINE"
    assert (record.row, record.col) == (2, 2)


def test_process_all_empty_mapping():
    result = process_all({}, _simple_config())
    assert result.total_sheets == 0
    assert result.total_rows == 0
    assert result.throughput_rows_per_sec >= 0.0
    assert result.sheet_stats == []


def test_process_all_invalid_config_is_processing_error():
    with pytest.raises(ProcessingError, match="Invalid configuration"):
        process_all({"s": [["x"]]}, _simple_config(output="bogus"))


def test_process_workbook_missing_file(temp_workdir: Path):
    with pytest.raises(ProcessingError, match="Workbook not found"):
        process_workbook(temp_workdir / "data" / "missing.xlsx", _simple_config())


def test_process_workbook_unreadable_file(temp_workdir: Path):
    bogus = temp_workdir / "data" / "broken.xlsx"
    bogus.write_bytes(b"not a zip archive")
    with pytest.raises(ProcessingError):
        process_workbook(bogus, _simple_config())


def test_process_all_records_unexpected_error_per_sheet():
    def picky(cell):
        if cell.value.label() == "boom":
            raise RuntimeError("selector cannot handle this cell")
        return cell.row == 1

    config = _simple_config(
        header_groups=(
            HeaderGroupRule(name="item", selector=SelectorSpec(cols=frozenset({1})), direction=Direction.WEST),
            HeaderGroupRule(name="month", selector=picky, direction=Direction.NORTH),
        )
    )
    sheets = {
        "bad": [[None, "Jan"], ["Sales", "boom"]],
        "good": [[None, "Jan"], ["Sales", 1]],
    }
    result = process_all(sheets, config)
    assert result.success_sheets == 1
    assert result.failed_sheets == 1
    assert set(result.results) == {"good"}

    (record,) = result.errors
    assert record.sheet == "bad"
    assert record.error_type == "UNEXPECTED_ERROR"
    assert record.error_type in ERROR_TYPES
    assert (record.row, record.col) == (-1, -1)
    assert record.message == "RuntimeError: selector cannot handle this cell"
