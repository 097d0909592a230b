from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from takedown.core.errors import ConfigError, StorageError
from takedown.core.interfaces import IProgressRepository
from takedown.core.models import ProgressRecord

logger = logging.getLogger(__name__)


class ProgressStore(IProgressRepository):
    """Durable YAML record of which pipeline stages have completed.

    Every write goes to a sibling temp file that is flushed, fsync'd and then
    renamed over the record, so a crash leaves either the old or the new
    record on disk, never a torn one.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store at the given path.

        Args:
            path: File path for the progress YAML file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def peek(self) -> ProgressRecord:
        """Read the record without creating it; a missing file reads as empty."""
        if not self.exists():
            return ProgressRecord()
        return self._read()

    def load(self) -> ProgressRecord:
        """Read the record, creating an empty one on first run."""
        if not self.exists():
            logger.info("no progress record at %s, starting a fresh run", self.path)
            self._create_empty()
            return ProgressRecord()
        return self._read()

    def save(self, record: ProgressRecord) -> None:
        """Durably overwrite the record with `record`."""
        text = yaml.safe_dump(record.to_dict(), sort_keys=False, default_flow_style=False)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self._write_synced(tmp, text)
            os.replace(tmp, self.path)
            self._sync_dir(self.path.parent)
        except OSError as e:
            raise StorageError(f"cannot write progress record {self.path}: {e}") from e

    def mark_done(self, record: ProgressRecord, stage: str) -> ProgressRecord:
        """Set `stage` complete and persist before returning the new record."""
        updated = record.with_done(stage)
        self.save(updated)
        return updated

    # ---------- helpers ----------

    def _read(self) -> ProgressRecord:
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read progress record {self.path}: {e}") from e
        if data is None:
            return ProgressRecord()
        if not isinstance(data, dict):
            raise ConfigError(f"{self.path}: expected a YAML mapping, got {type(data).__name__}")
        try:
            return ProgressRecord.model_validate({str(k): v for k, v in data.items()})
        except ValidationError as e:
            raise ConfigError(f"{self.path}: invalid progress record\n{e}") from e

    def _create_empty(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_synced(self.path, "")
            self._sync_dir(self.path.parent)
        except OSError as e:
            raise StorageError(f"cannot create progress record {self.path}: {e}") from e

    @staticmethod
    def _write_synced(path: Path, text: str) -> None:
        """Write a file with immediate flush and sync."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

    @staticmethod
    def _sync_dir(path: Path) -> None:
        if not hasattr(os, "O_DIRECTORY"):
            return
        fd = os.open(path, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
