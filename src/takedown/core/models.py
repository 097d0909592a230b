"""Core data models and the columnar row buffer used by the loader.

This module defines:
- `ResolvedPaths`: every filesystem location a run touches.
- `ProgressRecord`: persisted stage completion flags.
- `ExtractedRecord`: one matched line, as written by the extractor.
- `AccessRow` / `AccessColumns`: parsed rows and the append-only buffer that
   is handed to the store as an Arrow table.

Design notes
------------
- `ProgressRecord` keeps unknown keys so that records written by a newer
  version survive a load/save cycle.
- `AccessColumns.to_arrow_table` uses a fixed schema that mirrors the
  `access_log` table, column for column.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

import pyarrow as pa
from pydantic import BaseModel, ConfigDict

from takedown.constants import STAGES

PipelineState = Literal["NotStarted", "Extracting", "Loading", "Pruning", "Reporting", "Done"]


# === Paths ===


@dataclass(frozen=True, kw_only=True)
class ResolvedPaths:
    """Locations derived from the job description; never persisted."""

    output_dir: Path
    access_log_dir: Path
    progress_file: Path
    app_list_file: Path
    store_file: Path
    report_file: Path


# === Progress ===


class ProgressRecord(BaseModel):
    """Stage completion flags. A flag only ever goes from False to True."""

    model_config = ConfigDict(extra="allow")

    extract: bool = False
    load: bool = False
    prune: bool = False
    report: bool = False

    def is_done(self, stage: str) -> bool:
        if stage not in STAGES:
            raise KeyError(stage)
        return bool(getattr(self, stage))

    def with_done(self, stage: str) -> ProgressRecord:
        if stage not in STAGES:
            raise KeyError(stage)
        return self.model_copy(update={stage: True})

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()


# === Extracted line ===


@dataclass(slots=True, frozen=True)
class ExtractedRecord:
    """A single access-log line matched by the extractor."""

    app: str
    volume: str
    source: str  # file the line was read from
    line_no: int  # 1-based
    line: str

    def to_json_line(self) -> str:
        """Serialize as a compact JSON line."""
        return json.dumps(asdict(self), separators=(",", ":"), ensure_ascii=False) + "\n"

    @classmethod
    def from_json(cls, obj: dict) -> ExtractedRecord:
        return cls(
            app=str(obj["app"]),
            volume=str(obj["volume"]),
            source=str(obj["source"]),
            line_no=int(obj["line_no"]),
            line=str(obj["line"]),
        )


# === Store rows ===

_ACCESS_FIELDS: list[tuple[str, pa.DataType]] = [
    ("app", pa.string()),
    ("volume", pa.string()),
    ("source", pa.string()),
    ("line_no", pa.int64()),
    ("ts", pa.timestamp("us")),
    ("client", pa.string()),
    ("method", pa.string()),
    ("path", pa.string()),
    ("status", pa.int32()),
    ("size", pa.int64()),
    ("referrer", pa.string()),
    ("agent", pa.string()),
    ("raw", pa.string()),
]

ACCESS_COLUMNS: tuple[str, ...] = tuple(n for n, _ in _ACCESS_FIELDS)


@dataclass(slots=True)
class AccessRow:
    app: str
    volume: str
    source: str
    line_no: int
    raw: str
    ts: datetime | None = None
    client: str | None = None
    method: str | None = None
    path: str | None = None
    status: int | None = None
    size: int | None = None
    referrer: str | None = None
    agent: str | None = None


@dataclass(slots=True)
class AccessColumns:
    """Append-only columnar buffer matching the `access_log` table."""

    app: list[str] = field(default_factory=list)
    volume: list[str] = field(default_factory=list)
    source: list[str] = field(default_factory=list)
    line_no: list[int] = field(default_factory=list)
    ts: list[datetime | None] = field(default_factory=list)
    client: list[str | None] = field(default_factory=list)
    method: list[str | None] = field(default_factory=list)
    path: list[str | None] = field(default_factory=list)
    status: list[int | None] = field(default_factory=list)
    size: list[int | None] = field(default_factory=list)
    referrer: list[str | None] = field(default_factory=list)
    agent: list[str | None] = field(default_factory=list)
    raw: list[str] = field(default_factory=list)

    def size_rows(self) -> int:
        return len(self.raw)

    def append(self, row: AccessRow) -> None:
        for name in ACCESS_COLUMNS:
            getattr(self, name).append(getattr(row, name))

    def to_arrow_table(self) -> pa.Table:
        """Convert the buffer to an Arrow table with the store's schema."""
        schema = pa.schema([pa.field(n, t) for n, t in _ACCESS_FIELDS])
        arrays = {n: pa.array(getattr(self, n), type=t) for n, t in _ACCESS_FIELDS}
        return pa.Table.from_pydict(arrays, schema=schema)
