from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error log buffer.

A batch run collects the ErrorRecords of failed sheets in memory. The engine
owns no files: the caller decides whether and where to write them with
flush(path), which appends JSON Lines.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "read_error_log",
]


class ErrorLogBuffer:
    # シリアル実行のみ (ロックなし)
    def __init__(self, records: Iterable[ErrorRecord] = ()) -> None:
        self._records: list[ErrorRecord] = list(records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(self._records)

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def counts_by_type(self) -> dict[str, int]:
        """Number of buffered records per error_type."""
        return dict(Counter(r.error_type for r in self._records))

    def flush(self, path: Path) -> Path:
        """Append buffered records to ``path`` and empty the buffer.

        Nothing is written (and no file created) when the buffer is empty.
        """
        if not self._records:
            return path
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self._records)
        self._records.clear()
        return path


def read_error_log(path: Path) -> list[ErrorRecord]:
    """Load a JSON Lines error log written by :meth:`ErrorLogBuffer.flush`."""
    with path.open(encoding="utf-8") as f:
        return [ErrorRecord.from_json_line(line) for line in f if line.strip()]
