"""DuckDB-backed relational store for loaded access-log rows.

One database file per run holds a single `access_log` table. The loader
creates it, the pruner deletes from it, the query engine reads from it.
"""

from __future__ import annotations

import logging
from pathlib import Path

import duckdb

from takedown.core.errors import StorageError
from takedown.storage.directories import remove_if_exists

logger = logging.getLogger(__name__)

ACCESS_LOG_TABLE = "access_log"

CREATE_ACCESS_LOG_TABLE = f"""
CREATE TABLE IF NOT EXISTS {ACCESS_LOG_TABLE} (
    app       VARCHAR NOT NULL,
    volume    VARCHAR NOT NULL,
    source    VARCHAR NOT NULL,
    line_no   BIGINT  NOT NULL,
    ts        TIMESTAMP,
    client    VARCHAR,
    method    VARCHAR,
    path      VARCHAR,
    status    INTEGER,
    size      BIGINT,
    referrer  VARCHAR,
    agent     VARCHAR,
    raw       VARCHAR NOT NULL
);
"""


def connect(path: Path, *, threads: int = 1) -> duckdb.DuckDBPyConnection:
    """Open (or create) the store file and make sure the schema exists."""
    try:
        con = duckdb.connect(str(path))
    except duckdb.Error as e:
        raise StorageError(f"cannot open store {path}: {e}") from e
    con.execute(f"PRAGMA threads={threads}")
    con.execute(CREATE_ACCESS_LOG_TABLE)
    return con


def open_existing(path: Path) -> duckdb.DuckDBPyConnection:
    """Reopen a store produced by an earlier, completed load stage."""
    if not path.is_file():
        raise StorageError(
            f"store {path} is missing although the load stage is recorded as complete; "
            "delete the progress record to rebuild it"
        )
    logger.debug("reopening store %s", path)
    return connect(path)


def discard(path: Path) -> None:
    """Remove a store file and its write-ahead log, if present."""
    for p in (path, path.with_name(path.name + ".wal")):
        if remove_if_exists(p):
            logger.info("discarded previous store file %s", p)


def count_rows(con: duckdb.DuckDBPyConnection) -> int:
    return int(con.execute(f"SELECT count(*) FROM {ACCESS_LOG_TABLE}").fetchone()[0])
