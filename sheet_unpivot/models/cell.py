from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

"""Cell and Scalar models for the unpivoting engine.

A Scalar is the explicit tagged value of one spreadsheet cell. Every Cell
carries a definite kind so downstream code never has to guess which column
(text / number / boolean) the parser happened to fill.
"""

__all__ = [
    "ScalarKind",
    "Scalar",
    "Cell",
    "UnsupportedValueError",
]


class UnsupportedValueError(TypeError):
    """Raised when a raw value cannot be expressed as a Scalar."""


class ScalarKind(Enum):
    """Kinds of cell values (tagged union discriminator)."""
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMPTY = "empty"


@dataclass(frozen=True)
class Scalar:
    """Typed cell value.

    Use :meth:`Scalar.of` to build one from a raw parser value.
    """
    kind: ScalarKind
    value: str | int | float | bool | None = None

    @staticmethod
    def of(raw: Any) -> Scalar:
        """Convert a raw value (python / numpy / pandas) into a Scalar.

        Parameters
        ----------
        raw: value as produced by the workbook reader

        Raises
        ------
        UnsupportedValueError: the value has no Scalar representation
        """
        if isinstance(raw, Scalar):
            return raw
        if raw is None or raw is pd.NA or raw is pd.NaT:
            return EMPTY
        # bool は int のサブクラスなので数値判定より先
        if isinstance(raw, (bool, np.bool_)):
            return Scalar(ScalarKind.BOOLEAN, bool(raw))
        if isinstance(raw, (int, np.integer)):
            return Scalar(ScalarKind.NUMBER, int(raw))
        if isinstance(raw, (float, np.floating)):
            if math.isnan(raw):
                return EMPTY
            return Scalar(ScalarKind.NUMBER, float(raw))
        if isinstance(raw, str):
            if raw.strip() == "":
                return EMPTY
            return Scalar(ScalarKind.TEXT, raw)
        if isinstance(raw, (datetime, date, time)):
            return Scalar(ScalarKind.TEXT, raw.isoformat())
        if isinstance(raw, np.datetime64):
            return Scalar(ScalarKind.TEXT, pd.Timestamp(raw).isoformat())
        raise UnsupportedValueError(f"unsupported cell value type: {type(raw).__name__}")

    @property
    def is_empty(self) -> bool:
        return self.kind is ScalarKind.EMPTY

    def label(self) -> str:
        """Text used when this value acts as a header label."""
        if self.kind is ScalarKind.EMPTY:
            return ""
        if self.kind is ScalarKind.BOOLEAN:
            return "TRUE" if self.value else "FALSE"
        if self.kind is ScalarKind.NUMBER and isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)

    def text(self) -> str | None:
        """Stripped text for TEXT scalars, None for any other kind."""
        if self.kind is ScalarKind.TEXT:
            return str(self.value).strip()
        return None


EMPTY = Scalar(ScalarKind.EMPTY, None)


@dataclass(frozen=True, order=True)
class Cell:
    """One positioned spreadsheet cell (1-based row/col).

    Ordering and identity are by coordinate (row first, then col); the value
    does not take part in comparisons.
    """
    row: int
    col: int
    value: Scalar = field(default=EMPTY, compare=False)

    @property
    def coordinate(self) -> tuple[int, int]:
        return (self.row, self.col)

    def __repr__(self) -> str:  # pragma: no cover (debug helper)
        return f"Cell({self.row}, {self.col}, {self.value.kind.value}:{self.value.value!r})"
