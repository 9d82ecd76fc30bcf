from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""Summary line rendering for batch runs.

Format:
SUMMARY sheets={processed}/{requested} success={success} failed={failed} rows={rows}
dropped={dropped} elapsed_sec={elapsed} throughput_rps={throughput}
"""


def _format_number(value: float) -> str:
    # 整数値は小数点なし、極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line for ``result``.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_sheets=1, failed_sheets=0, total_rows=26, dropped_cells=3,
        ...     start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=13.0
        ... )
        >>> render_summary_line(result)
        'SUMMARY sheets=1/1 success=1 failed=0 rows=26 dropped=3 elapsed_sec=2 throughput_rps=13'
    """
    return (
        f"SUMMARY sheets={result.total_sheets}/{result.sheets_requested} "
        f"success={result.success_sheets} "
        f"failed={result.failed_sheets} "
        f"rows={result.total_rows} "
        f"dropped={result.dropped_cells} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
