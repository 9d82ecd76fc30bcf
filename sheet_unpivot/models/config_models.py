from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from .cell import Cell
from .direction import Direction

"""Config dataclasses for the unpivoting pipeline.

These are the caller-declared configuration objects. They are plain values:
the pipeline never mutates them and holds no process-wide state, so one
PipelineConfig can be shared across any number of runs.

YAML loading / schema validation lives in sheet_unpivot/config/loader.py.
"""

__all__ = [
    "Selector",
    "HeaderRule",
    "HeaderGroupRule",
    "PipelineConfig",
    "OUTPUT_MODES",
]

Selector = Callable[[Cell], bool]

OUTPUT_MODES = ("concat", "separate")


@dataclass(frozen=True)
class HeaderRule:
    """Classifier rule: cells matching ``selector`` become headers of group ``name``."""
    name: str
    selector: Selector
    label_source: str = "own_value"  # 現状 own_value のみ


@dataclass(frozen=True, kw_only=True)
class HeaderGroupRule(HeaderRule):
    """Header group declaration used by the orchestrator.

    Carries the classifier rule plus how the group is resolved and which
    output field receives its label (defaults to the group name).
    """
    direction: Direction
    output_field: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction.parse(self.direction))

    @property
    def field_name(self) -> str:
        return self.output_field or self.name


@dataclass(frozen=True)
class PipelineConfig:
    """Root configuration for one unpivot run.

    The main track uses ``header_groups``. When ``exception_labels`` is
    non-empty, rows holding one of those labels (summary / total rows that
    are header and data at once) are split off together with
    ``always_keep_rows`` and resolved with ``exception_header_groups``.
    """
    header_groups: tuple[HeaderGroupRule, ...]
    origin_row_offset: int = 0  # 読み飛ばした先頭行数 (座標は絶対値のまま)
    origin_col_offset: int = 0
    exception_labels: frozenset[str] = field(default_factory=frozenset)
    always_keep_rows: frozenset[int] = field(default_factory=frozenset)
    exception_header_groups: tuple[HeaderGroupRule, ...] = ()
    output: str = "concat"  # concat | separate

    def __post_init__(self) -> None:
        object.__setattr__(self, "header_groups", tuple(self.header_groups))
        object.__setattr__(self, "exception_header_groups", tuple(self.exception_header_groups))
        object.__setattr__(self, "exception_labels", frozenset(s.strip() for s in self.exception_labels))
        object.__setattr__(self, "always_keep_rows", frozenset(self.always_keep_rows))

    @property
    def has_exception_track(self) -> bool:
        return bool(self.exception_labels)
