"""Resumable pipeline orchestrator: extract → load → prune → report.

This module provides two layers:

1) `run_pipeline(...)`:
   - Application-layer use case.
   - Talks to collaborators ONLY through the protocols in
     `takedown.core.interfaces`, built by injected factories.
   - Owns the progress record and the directory map for the whole run.

2) `execute(...)`:
   - Convenience wrapper for CLI / script usage.
   - Loads the job file and application list, resolves paths, wires the
     concrete implementations, then calls `run_pipeline(...)`.

Every stage is gated by its progress flag. A stage either runs from scratch
and has its flag persisted before the next stage starts, or is skipped
entirely. A failing stage leaves its flag unset and propagates the error, so
the next invocation retries exactly that stage.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from takedown.constants import STAGE_EXTRACT, STAGE_LOAD, STAGE_PRUNE, STAGE_REPORT, STAGES
from takedown.core.config import AppList, AppSpec, JobConfig, load_app_list, load_job
from takedown.core.errors import StorageError
from takedown.core.interfaces import (
    IExtractor,
    ILoader,
    IProgressRepository,
    IPruner,
    IQueryEngine,
    IReporter,
)
from takedown.core.models import ProgressRecord, ResolvedPaths
from takedown.extraction.extractor import Extractor
from takedown.loading.loader import Loader
from takedown.orchestration.utils import pipeline_state
from takedown.pruning.pruner import Pruner
from takedown.query.queryer import QueryEngine
from takedown.reporting.reporter import Reporter
from takedown.storage import store
from takedown.storage.directories import (
    build_directory_map,
    default_app_list_path,
    default_install_root,
    ensure_output_dirs,
    get_log_dirs,
    resolve_paths,
)
from takedown.storage.progress import ProgressStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class CollaboratorFactories:
    """Constructors for the stage collaborators and store lifecycle hooks."""

    extractor: Callable[[Sequence[AppSpec], Sequence[str]], IExtractor] = Extractor
    loader: Callable[[Path], ILoader] = Loader
    pruner: Callable[[Any], IPruner] = Pruner
    query_engine: Callable[[Any], IQueryEngine] = QueryEngine
    reporter: Callable[[IQueryEngine], IReporter] = Reporter
    open_store: Callable[[Path], Any] = store.open_existing
    discard_store: Callable[[Path], None] = store.discard


# ---------------------------------------------------------------------------
# Output DTO
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class PipelineOutput:
    """High-level output of one invocation."""

    paths: ResolvedPaths
    directory_map: dict[Path, Path]
    progress: ProgressRecord
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    elapsed: dict[str, float] = field(default_factory=dict)

    @property
    def report_file(self) -> Path:
        return self.paths.report_file

    @property
    def done(self) -> bool:
        return pipeline_state(self.progress) == "Done"


# ---------------------------------------------------------------------------
# Run state
# ---------------------------------------------------------------------------


def _write_text_synced(path: Path, text: str) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        raise StorageError(f"cannot write {path}: {e}") from e


class PipelineRun:
    """State of one invocation: progress record, directory map, store handle."""

    def __init__(
        self,
        *,
        job: JobConfig,
        apps: AppList,
        paths: ResolvedPaths,
        directory_map: dict[Path, Path],
        progress_repo: IProgressRepository,
        factories: CollaboratorFactories,
    ) -> None:
        self.job = job
        self.apps = apps
        self.paths = paths
        self.directory_map = directory_map
        self.progress_repo = progress_repo
        self.factories = factories
        self.progress = progress_repo.load()
        self._store: Any = None
        self._stages: dict[str, Callable[[], None]] = {
            STAGE_EXTRACT: self.extract,
            STAGE_LOAD: self.load,
            STAGE_PRUNE: self.prune,
            STAGE_REPORT: self.report,
        }

    # ---------- store handle ----------

    def get_store(self) -> Any:
        """Store handle for stages after load; reopened lazily on resume."""
        if self._store is None:
            self._store = self.factories.open_store(self.paths.store_file)
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    # ---------- stages ----------

    def extract(self) -> None:
        extractor = self.factories.extractor(self.apps.apps, self.job.volume_ids)
        for input_dir, output_file in self.directory_map.items():
            extractor.process(input_dir, output_file)

    def load(self) -> None:
        # a half-finished load from an earlier crash must not leak into this one
        self.close()
        self.factories.discard_store(self.paths.store_file)
        loader = self.factories.loader(self.paths.store_file)
        self._store = loader.get_store()
        for log_file in self.directory_map.values():
            if not log_file.is_file():
                logger.warning("extracted log %s is missing, skipping", log_file)
                continue
            loader.load(log_file)

    def prune(self) -> None:
        pruner = self.factories.pruner(self.get_store())
        pruner.prune(self.job.volumes)

    def report(self) -> None:
        query_engine = self.factories.query_engine(self.get_store())
        reporter = self.factories.reporter(query_engine)
        for volume_id, windows in self.job.volumes.items():
            for window in windows:
                reporter.add_volume_to_report(volume_id, window.start, window.end)
        _write_text_synced(self.paths.report_file, reporter.report())
        logger.info("report written to %s", self.paths.report_file)

    # ---------- state machine ----------

    def run(self) -> PipelineOutput:
        out = PipelineOutput(paths=self.paths, directory_map=self.directory_map, progress=self.progress)
        logger.info("ticket %s: starting in state %s", self.job.ticket, pipeline_state(self.progress))
        try:
            for stage in STAGES:
                if self.progress.is_done(stage):
                    logger.info("stage %s already complete, skipping", stage)
                    out.skipped.append(stage)
                    continue

                logger.info("stage %s: running", stage)
                t0 = time.monotonic()
                try:
                    self._stages[stage]()
                except Exception:
                    logger.error("stage %s failed; it will run again from scratch on the next invocation", stage)
                    raise

                # persist before moving on: prune must never run twice
                self.progress = self.progress_repo.mark_done(self.progress, stage)
                out.progress = self.progress
                out.executed.append(stage)
                out.elapsed[stage] = time.monotonic() - t0
                logger.info("stage %s: done in %.1fs", stage, out.elapsed[stage])
        finally:
            self.close()

        logger.info("ticket %s: %s", self.job.ticket, pipeline_state(self.progress))
        return out


# ---------------------------------------------------------------------------
# 1) Use case
# ---------------------------------------------------------------------------


def plan_directory_map(job: JobConfig, paths: ResolvedPaths) -> dict[Path, Path]:
    """Discover log directories and map them to extracted-log files."""
    relative_dirs = get_log_dirs(job.parent_dir, job.skip_dirs, job.sub_dir_path)
    return build_directory_map(job.parent_dir, relative_dirs, paths.access_log_dir)


def run_pipeline(
    *,
    job: JobConfig,
    apps: AppList,
    paths: ResolvedPaths,
    progress_repo: IProgressRepository | None = None,
    factories: CollaboratorFactories | None = None,
) -> PipelineOutput:
    """Run (or resume) every incomplete stage for one job.

    This function:
    - Creates the output directories (not gated by progress).
    - Discovers log directories and builds the directory map.
    - Loads or initializes the progress record.
    - Executes each incomplete stage, persisting its flag right after.
    """
    ensure_output_dirs(paths)
    directory_map = plan_directory_map(job, paths)
    logger.info("%d log directories under %s", len(directory_map), job.parent_dir)

    run = PipelineRun(
        job=job,
        apps=apps,
        paths=paths,
        directory_map=directory_map,
        progress_repo=progress_repo or ProgressStore(paths.progress_file),
        factories=factories or CollaboratorFactories(),
    )
    return run.run()


# ---------------------------------------------------------------------------
# 2) Convenience wrapper
# ---------------------------------------------------------------------------


def execute(
    job_file: str | Path,
    *,
    install_root: Path | None = None,
    app_list_file: Path | None = None,
    factories: CollaboratorFactories | None = None,
) -> PipelineOutput:
    """Load a job file and run the pipeline with the default collaborators.

    Configuration errors surface before anything is written to disk.
    """
    job = load_job(job_file)
    if app_list_file is None:
        app_list_file = default_app_list_path(install_root or default_install_root())
    paths = resolve_paths(job, app_list_file)
    apps = load_app_list(paths.app_list_file)
    return run_pipeline(job=job, apps=apps, paths=paths, factories=factories)
