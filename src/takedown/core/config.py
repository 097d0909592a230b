"""Job file and application list schemas.

Both documents are YAML. They are validated eagerly with pydantic so that a
missing or mistyped field fails the run before any stage touches disk.

Time windows
------------
Window bounds accept ISO-8601 strings or native YAML timestamps. Aware values
are converted to UTC and made naive; naive values are taken as UTC. Windows are
half-open: ``[start, end)``.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from takedown.core.errors import ConfigError


def to_utc_naive(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TimeWindow(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _normalize(cls, v: datetime) -> datetime:
        return to_utc_naive(v)

    @model_validator(mode="after")
    def _ordered(self) -> TimeWindow:
        if self.start >= self.end:
            raise ValueError(f"window start {self.start} must be before end {self.end}")
        return self

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts < self.end


class JobConfig(BaseModel):
    """Declarative description of one investigation run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ticket: str = Field(min_length=1)
    output_dir: Path
    parent_dir: Path
    skip_dirs: list[str] = Field(default_factory=list)
    sub_dir_path: str = ""
    volumes: dict[str, list[TimeWindow]] = Field(min_length=1)

    @field_validator("ticket")
    @classmethod
    def _flat_ticket(cls, v: str) -> str:
        if v in (".", "..") or "/" in v or os.sep in v:
            raise ValueError(f"ticket {v!r} must be a single path component")
        return v

    @field_validator("skip_dirs", mode="before")
    @classmethod
    def _skip_dirs(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple, set)):
            return [str(x) for x in v]
        return v

    @field_validator("sub_dir_path", mode="before")
    @classmethod
    def _sub_dir_path(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str) and os.path.isabs(v):
            raise ValueError(f"sub_dir_path {v!r} must be relative")
        return v

    @field_validator("volumes", mode="before")
    @classmethod
    def _volume_keys(cls, v: Any) -> Any:
        # YAML turns numeric volume ids into ints
        if isinstance(v, dict):
            return {str(k): ([] if w is None else w) for k, w in v.items()}
        return v

    @property
    def volume_ids(self) -> list[str]:
        return sorted(self.volumes)


class AppSpec(BaseModel):
    """One tracked application: a display name and the regex identifying its lines."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    pattern: str = Field(min_length=1)

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v


class AppList(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    apps: list[AppSpec] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_names(self) -> AppList:
        names = [a.name for a in self.apps]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate app names: {dupes}")
        return self


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


def _read_yaml_mapping(path: Path, what: str) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"{what} not found: {path}")
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"{path}: cannot read {what}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a YAML mapping, got {type(data).__name__}")
    return data


def load_job(path: str | Path) -> JobConfig:
    """Load and validate a job file.

    Raises
    ------
    ConfigError
        If the file is missing, is not a mapping, or fails validation.
    """
    path = Path(path)
    data = _read_yaml_mapping(path, "job file")
    try:
        return JobConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path}: invalid job file\n{e}") from e


def load_app_list(path: str | Path) -> AppList:
    """Load and validate the application list."""
    path = Path(path)
    data = _read_yaml_mapping(path, "application list")
    try:
        return AppList.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path}: invalid application list\n{e}") from e
