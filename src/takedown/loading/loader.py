from __future__ import annotations

import json
import logging
from pathlib import Path

import duckdb

from takedown.core.errors import LoadError
from takedown.core.interfaces import ILoader
from takedown.core.models import ACCESS_COLUMNS, AccessColumns, ExtractedRecord
from takedown.loading.parsing import parse_access_line
from takedown.storage import store

logger = logging.getLogger(__name__)

_STAGING_VIEW = "incoming_rows"


class Loader(ILoader):
    """
    Bulk loader: extracted JSON-lines files -> `access_log` table.

    Rows are parsed into an `AccessColumns` buffer and inserted through a
    registered Arrow table every `batch_rows` rows.
    """

    def __init__(self, store_path: str | Path, *, batch_rows: int = 50_000) -> None:
        self.store_path = Path(store_path)
        self.batch_rows = batch_rows
        self._con: duckdb.DuckDBPyConnection | None = None

    def get_store(self) -> duckdb.DuckDBPyConnection:
        """Return the store connection, creating the database if absent."""
        if self._con is None:
            self._con = store.connect(self.store_path)
        return self._con

    def load(self, log_file: str | Path) -> int:
        """Ingest one extracted log file. Returns rows inserted."""
        log_file = Path(log_file)
        con = self.get_store()
        buf = AccessColumns()
        total = 0
        try:
            with open(log_file, encoding="utf-8") as fh:
                for line_no, line in enumerate(fh, start=1):
                    if not line.strip():
                        continue
                    try:
                        rec = ExtractedRecord.from_json(json.loads(line))
                    except (ValueError, KeyError, TypeError) as e:
                        raise LoadError(f"{log_file}:{line_no}: malformed extracted record: {e}") from e
                    buf.append(parse_access_line(rec))
                    if buf.size_rows() >= self.batch_rows:
                        total += self._flush(con, buf)
                        buf = AccessColumns()
        except OSError as e:
            raise LoadError(f"cannot read extracted log {log_file}: {e}") from e

        total += self._flush(con, buf)
        logger.info("loaded %d rows from %s", total, log_file.name)
        return total

    @staticmethod
    def _flush(con: duckdb.DuckDBPyConnection, buf: AccessColumns) -> int:
        n = buf.size_rows()
        if n == 0:
            return 0
        cols = ", ".join(ACCESS_COLUMNS)
        con.register(_STAGING_VIEW, buf.to_arrow_table())
        try:
            con.execute(f"INSERT INTO {store.ACCESS_LOG_TABLE} ({cols}) SELECT {cols} FROM {_STAGING_VIEW}")
        finally:
            con.unregister(_STAGING_VIEW)
        return n
