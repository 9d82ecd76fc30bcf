"""Spreadsheet unpivoting engine.

Turns a grid of spreadsheet cells into tidy rows by resolving, for every data
cell, its governing header cells with directional (compass) search rules.
"""

from .config.loader import ConfigError, build_config, load_config
from .excel.reader import frame_to_rows, read_workbook
from .logging.init import setup_logging
from .models.cell import Cell, Scalar, ScalarKind
from .models.config_models import HeaderGroupRule, HeaderRule, PipelineConfig
from .models.direction import Direction
from .models.grid import Grid, MalformedInputError, ingest
from .models.header_group import Classification, HeaderGroup
from .models.tidy_row import Attachment, TidyRow
from .services.classifier import AmbiguousHeaderError, classify, partition_exception_rows
from .services.join import JoinSpec, combine, join_cells, to_frame
from .services.orchestrator import ProcessingError, process_all, process_workbook, run_pipeline
from .services.resolver import DuplicateHeaderLineError, resolve
from .services.summary import render_summary_line

__version__ = "0.1.0"

__all__ = [
    "Attachment",
    "AmbiguousHeaderError",
    "Cell",
    "Classification",
    "ConfigError",
    "Direction",
    "DuplicateHeaderLineError",
    "Grid",
    "HeaderGroup",
    "HeaderGroupRule",
    "HeaderRule",
    "JoinSpec",
    "MalformedInputError",
    "PipelineConfig",
    "ProcessingError",
    "Scalar",
    "ScalarKind",
    "TidyRow",
    "build_config",
    "classify",
    "combine",
    "frame_to_rows",
    "ingest",
    "join_cells",
    "load_config",
    "partition_exception_rows",
    "process_all",
    "process_workbook",
    "read_workbook",
    "render_summary_line",
    "resolve",
    "run_pipeline",
    "setup_logging",
    "to_frame",
]
