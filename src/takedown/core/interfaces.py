from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

import pandas as pd

from takedown.core.config import TimeWindow
from takedown.core.models import ProgressRecord


# ---------------------------------------------------------------------------
# IExtractor
# ---------------------------------------------------------------------------

@runtime_checkable
class IExtractor(Protocol):
    """
    Scans one input directory for lines belonging to tracked apps and volumes.

    Domain expectations:
    - Called once per Directory Map entry.
    - Overwrites `output_file` completely; re-running is always safe.
    """

    def process(self, input_dir: Path, output_file: Path) -> int:
        """Write every matching line under `input_dir` to `output_file`.

        Returns the number of lines written.
        """
        ...


# ---------------------------------------------------------------------------
# ILoader
# ---------------------------------------------------------------------------

@runtime_checkable
class ILoader(Protocol):
    """
    Bulk loader from extracted log files into the relational store.

    Domain expectations:
    - The orchestrator discards any previous store before constructing it,
      so `load` only ever appends into a fresh store.
    """

    def get_store(self) -> Any:
        """Return a handle to the backing store, creating it if absent."""
        ...

    def load(self, log_file: Path) -> int:
        """Ingest one extracted log file. Returns rows inserted."""
        ...


# ---------------------------------------------------------------------------
# IPruner
# ---------------------------------------------------------------------------

@runtime_checkable
class IPruner(Protocol):
    """
    Removes records outside the scope implied by the volumes specification.

    Destructive: the orchestrator guarantees at most one successful run per job.
    """

    def prune(self, volumes: Mapping[str, Sequence[TimeWindow]]) -> int:
        """Delete out-of-scope rows. Returns rows deleted."""
        ...


# ---------------------------------------------------------------------------
# IQueryEngine
# ---------------------------------------------------------------------------

@runtime_checkable
class IQueryEngine(Protocol):
    """Time-windowed lookups keyed by volume id and a `[start, end)` range."""

    def requests_in_window(self, volume: str, start: datetime, end: datetime) -> pd.DataFrame:
        ...

    def app_summary(self, volume: str, start: datetime, end: datetime) -> pd.DataFrame:
        ...

    def window_totals(self, volume: str, start: datetime, end: datetime) -> tuple[int, int]:
        """Return (requests, unique clients) for the window."""
        ...


# ---------------------------------------------------------------------------
# IReporter
# ---------------------------------------------------------------------------

@runtime_checkable
class IReporter(Protocol):
    """Accumulates per-window report sections, then renders them to text."""

    def add_volume_to_report(self, volume_id: str, start: datetime, end: datetime) -> None:
        ...

    def report(self) -> str:
        ...


# ---------------------------------------------------------------------------
# IProgressRepository
# ---------------------------------------------------------------------------

@runtime_checkable
class IProgressRepository(Protocol):
    """
    Durable storage for the stage completion record.

    Domain expectations:
    - `load` creates an empty record on first use.
    - `save` returns only after the record is on stable storage.
    - `mark_done` sets one stage flag and saves before returning.
    """

    def load(self) -> ProgressRecord:
        ...

    def save(self, record: ProgressRecord) -> None:
        ...

    def mark_done(self, record: ProgressRecord, stage: str) -> ProgressRecord:
        ...
