# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from sheet_unpivot.config.selectors import SelectorSpec
from sheet_unpivot.logging.init import reset_logging
from sheet_unpivot.models.cell import ScalarKind
from sheet_unpivot.models.config_models import HeaderGroupRule, PipelineConfig
from sheet_unpivot.models.direction import Direction

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _build_cash_flow_rows() -> list[list[object]]:
    """Cash-flow sheet, 15 columns.

    row 1: months in cols 3-14, "TOTALS" in col 15
    row 2: "Cash Inflows" (col 1, spans rows 2-4 when merged), "Collections"
    row 3: "Other" (col 1 empty: merged-cell continuation)
    row 4: "Total Cash Inflows" summary row (label + its own numbers)
    """
    collections = [100 + i for i in range(12)]
    other = [10 + i for i in range(12)]
    totals = [a + b for a, b in zip(collections, other)]
    return [
        [None, None, *_MONTHS, "TOTALS"],
        ["Cash Inflows", "Collections", *collections, sum(collections)],
        [None, "Other", *other, sum(other)],
        ["Total Cash Inflows", None, *totals, sum(totals)],
    ]


def _cash_flow_config(*, include_totals: bool = True, output: str = "concat") -> PipelineConfig:
    month_exclude = None if include_totals else frozenset({"TOTALS"})
    month = SelectorSpec(rows=frozenset({1}), min_col=3, exclude_values=month_exclude)
    return PipelineConfig(
        header_groups=(
            HeaderGroupRule(
                name="main_header",
                selector=SelectorSpec(cols=frozenset({1}), min_row=2, kinds=frozenset({ScalarKind.TEXT})),
                direction=Direction.WEST_THEN_NORTH,
            ),
            HeaderGroupRule(
                name="sub_header",
                selector=SelectorSpec(cols=frozenset({2}), min_row=2, kinds=frozenset({ScalarKind.TEXT})),
                direction=Direction.WEST,
            ),
            HeaderGroupRule(name="month", selector=month, direction=Direction.NORTH),
        ),
        exception_labels=frozenset({"Total Cash Inflows"}),
        always_keep_rows=frozenset({1}),
        exception_header_groups=(
            HeaderGroupRule(
                name="row_label",
                selector=SelectorSpec(cols=frozenset({1}), min_row=2),
                direction=Direction.WEST,
                output_field="main_header",
            ),
            HeaderGroupRule(name="month", selector=month, direction=Direction.NORTH),
        ),
        output=output,
    )


_CASH_FLOW_YAML = """header_groups:
  main_header:
    select: {cols: [1], min_row: 2, kinds: [text]}
    direction: WEST_THEN_NORTH
  sub_header:
    select: {cols: [2], min_row: 2, kinds: [text]}
    direction: WEST
  month:
    select: {rows: [1], min_col: 3}
    direction: NORTH
exception_labels: ["Total Cash Inflows"]
always_keep_rows: [1]
exception_header_groups:
  row_label:
    select: {cols: [1], min_row: 2}
    direction: WEST
    output_field: main_header
  month:
    select: {rows: [1], min_col: 3}
    direction: NORTH
output: concat
"""


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def months() -> list[str]:
    return list(_MONTHS)


@pytest.fixture()
def cash_flow_rows() -> list[list[object]]:
    return _build_cash_flow_rows()


@pytest.fixture()
def make_cash_flow_rows() -> Callable[[], list[list[object]]]:
    """Builder for tests that need several independent copies of the sheet."""
    return _build_cash_flow_rows


@pytest.fixture()
def make_cash_flow_config() -> Callable[..., PipelineConfig]:
    """``make_cash_flow_config(include_totals=True, output="concat")``."""
    return _cash_flow_config


@pytest.fixture()
def cash_flow_yaml() -> str:
    return _CASH_FLOW_YAML


@pytest.fixture()
def write_config(temp_workdir: Path, cash_flow_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "pipeline.yml"
    cfg.write_text(cash_flow_yaml, encoding="utf-8")
    return cfg
