"""Shigella vaccine trial summary report engine."""
from .config import DEFAULT_CONFIG, GroupingStrategy, ReportConfig
from .errors import EmptyDatasetError, MissingHeaderError, ReportError, UnreadableFileError
from .models import SummaryData
from .orchestration.pipeline import build_summary, process_files

__all__ = [
    "DEFAULT_CONFIG",
    "EmptyDatasetError",
    "GroupingStrategy",
    "MissingHeaderError",
    "ReportConfig",
    "ReportError",
    "SummaryData",
    "UnreadableFileError",
    "build_summary",
    "process_files",
]
