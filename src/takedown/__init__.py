"""takedown — resumable extraction, loading and reporting of access-log usage.

Typical use::

    from takedown import execute

    out = execute("jobs/ticket-123.yml")
    print(out.report_file.read_text())
"""

from __future__ import annotations

from .core.config import AppList, AppSpec, JobConfig, TimeWindow, load_app_list, load_job
from .core.errors import ConfigError, StorageError, TakedownError
from .core.models import ProgressRecord, ResolvedPaths
from .orchestration.orchestrator import CollaboratorFactories, PipelineOutput, execute, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "execute",
    "run_pipeline",
    "CollaboratorFactories",
    "PipelineOutput",
    "JobConfig",
    "TimeWindow",
    "AppList",
    "AppSpec",
    "load_job",
    "load_app_list",
    "ProgressRecord",
    "ResolvedPaths",
    "TakedownError",
    "ConfigError",
    "StorageError",
]
