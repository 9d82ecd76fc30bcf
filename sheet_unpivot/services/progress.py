from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Sheet progress bar for batch runs (tqdm, TTY only).

The bar advances once per sheet and shows running success / failed / row
counts as its postfix. Without a TTY (CI, pipes, redirected output) no bar
is created and every call is a no-op apart from the counters.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One bar over the sheets of a batch run.

    Counters (``current_sheet``, ``success``, ``failed``, ``rows``) are kept
    whether or not the bar is displayed.
    """

    def __init__(self, total_sheets: int, *, description: str = "Unpivoting sheets") -> None:
        self.total_sheets = total_sheets
        self.description = description
        self.current_sheet = 0
        self.success = 0
        self.failed = 0
        self.rows = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        if self.enabled:
            self.pbar = tqdm(
                total=total_sheets,
                desc=description,
                unit="sheet",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def start_sheet(self, sheet_name: str) -> None:
        self.current_sheet += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({sheet_name})")

    def finish_sheet(self, success: bool = True, rows: int = 0) -> None:
        """Count the sheet, advance the bar and refresh the postfix."""
        if success:
            self.success += 1
            self.rows += rows
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.set_postfix(success=self.success, failed=self.failed, rows=self.rows)
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
