"""Domain models for the spreadsheet unpivoting engine.

This package contains the value objects shared by the grid, classifier,
resolver, join engine and orchestrator.
"""

from .cell import Cell, Scalar, ScalarKind
from .config_models import HeaderGroupRule, HeaderRule, PipelineConfig
from .direction import Direction
from .error_record import ErrorRecord
from .grid import Grid, MalformedInputError, ingest
from .header_group import Classification, HeaderGroup
from .processing_result import PipelineResult, ProcessingResult, SheetStat, TrackStats
from .tidy_row import Attachment, TidyRow

__all__ = [
    # Cells / grid
    "Cell",
    "Scalar",
    "ScalarKind",
    "Grid",
    "MalformedInputError",
    "ingest",
    # Headers / resolution
    "Classification",
    "HeaderGroup",
    "Direction",
    "Attachment",
    "TidyRow",
    # Configuration models
    "HeaderRule",
    "HeaderGroupRule",
    "PipelineConfig",
    # Results
    "ErrorRecord",
    "PipelineResult",
    "ProcessingResult",
    "SheetStat",
    "TrackStats",
]
