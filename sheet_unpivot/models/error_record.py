from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from typing import Any

"""Error records of failed sheets.

A sheet fails when the pipeline hits a structural error. The record keeps
the coordinate that caused it, -1 when the error has none (e.g. a bad origin
offset). Serialized as one JSON object per line with exactly these keys:
timestamp, sheet, row, col, error_type, message.
"""

__all__ = [
    "ERROR_TYPES",
    "UNKNOWN_COORDINATE",
    "ErrorRecord",
]

ERROR_TYPES = (
    "MALFORMED_INPUT",
    "AMBIGUOUS_HEADER",
    "DUPLICATE_HEADER_LINE",
    "UNEXPECTED_ERROR",
)

UNKNOWN_COORDINATE = -1

_UPPER_SNAKE = re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)*$")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # ISO8601 UTC, 'Z' 終端
    sheet: str
    row: int
    col: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        sheet: str,
        row: int | None,
        col: int | None,
        error_type: str,
        message: str,
    ) -> ErrorRecord:
        """Stamp a record with the current UTC time.

        ``None`` coordinates are stored as -1.

        Raises:
            ValueError: ``error_type`` is not UPPER_SNAKE_CASE
        """
        if not _UPPER_SNAKE.match(error_type):
            raise ValueError(f"error_type must be UPPER_SNAKE_CASE: {error_type!r}")
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            sheet=sheet,
            row=UNKNOWN_COORDINATE if row is None else row,
            col=UNKNOWN_COORDINATE if col is None else col,
            error_type=error_type,
            message=message,
        )

    @property
    def has_coordinate(self) -> bool:
        return self.row != UNKNOWN_COORDINATE and self.col != UNKNOWN_COORDINATE

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json_line(cls, line: str) -> ErrorRecord:
        """Parse one line written by :meth:`to_json_line` (keys must match exactly)."""
        data: dict[str, Any] = json.loads(line)
        expected = {f.name for f in fields(cls)}
        if set(data) != expected:
            raise ValueError(f"error log keys {sorted(data)} != {sorted(expected)}")
        return cls(**data)
