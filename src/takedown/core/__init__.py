"""Core data models, configuration schemas, and collaborator interfaces.

This package provides:
- Configuration schemas (JobConfig, TimeWindow, AppList, AppSpec)
- Data models (ResolvedPaths, ProgressRecord, ExtractedRecord, AccessColumns)
- The exception hierarchy rooted at TakedownError
"""

from takedown.core.config import AppList, AppSpec, JobConfig, TimeWindow, load_app_list, load_job
from takedown.core.errors import (
    ConfigError,
    ExtractionError,
    LoadError,
    LogDirectoryError,
    StorageError,
    TakedownError,
)
from takedown.core.models import AccessColumns, AccessRow, ExtractedRecord, ProgressRecord, ResolvedPaths

__all__ = [
    "AppList",
    "AppSpec",
    "JobConfig",
    "TimeWindow",
    "load_app_list",
    "load_job",
    "ConfigError",
    "ExtractionError",
    "LoadError",
    "LogDirectoryError",
    "StorageError",
    "TakedownError",
    "AccessColumns",
    "AccessRow",
    "ExtractedRecord",
    "ProgressRecord",
    "ResolvedPaths",
]
