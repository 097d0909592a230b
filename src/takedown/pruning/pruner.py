from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import duckdb
import pyarrow as pa

from takedown.core.config import TimeWindow
from takedown.core.interfaces import IPruner
from takedown.query import sql_queries
from takedown.storage.store import count_rows

logger = logging.getLogger(__name__)

_SCOPE_VIEW = "scope_windows"


def scope_table(volumes: Mapping[str, Sequence[TimeWindow]]) -> pa.Table:
    """Flatten the volumes spec into one (volume, start_ts, end_ts) row per window."""
    rows = [(vid, w.start, w.end) for vid in sorted(volumes) for w in volumes[vid]]
    return pa.table(
        {
            "volume": pa.array([r[0] for r in rows], type=pa.string()),
            "start_ts": pa.array([r[1] for r in rows], type=pa.timestamp("us")),
            "end_ts": pa.array([r[2] for r in rows], type=pa.timestamp("us")),
        }
    )


class Pruner(IPruner):
    """
    Deletes rows outside the investigation scope:
    - volumes not named in the job,
    - rows without a parseable timestamp,
    - rows outside every `[start, end)` window of their volume.
    """

    def __init__(self, store: duckdb.DuckDBPyConnection) -> None:
        self.store = store

    def prune(self, volumes: Mapping[str, Sequence[TimeWindow]]) -> int:
        con = self.store
        scope = scope_table(volumes)
        before = count_rows(con)

        con.begin()
        try:
            if scope.num_rows == 0:
                con.execute(sql_queries.PRUNE_ALL_QUERY)
            else:
                con.register(_SCOPE_VIEW, scope)
                try:
                    con.execute(sql_queries.PRUNE_OUT_OF_SCOPE_QUERY)
                finally:
                    con.unregister(_SCOPE_VIEW)
            con.commit()
        except Exception:
            con.rollback()
            raise

        deleted = before - count_rows(con)
        logger.info("pruned %d of %d rows (%d windows in scope)", deleted, before, scope.num_rows)
        return deleted
