"""
queryer.py
----------

Read-only lookups over the `access_log` store, keyed by volume id and a
half-open time window. Results come back as pandas DataFrames ready for the
reporter.
"""

from __future__ import annotations

from datetime import datetime

import duckdb
import pandas as pd

from takedown.core.interfaces import IQueryEngine
from takedown.query import sql_queries
from takedown.storage.store import count_rows


class QueryEngine(IQueryEngine):
    def __init__(self, store: duckdb.DuckDBPyConnection) -> None:
        self.store = store

    def requests_in_window(self, volume: str, start: datetime, end: datetime) -> pd.DataFrame:
        """All rows for `volume` with `start <= ts < end`, oldest first.

        Args:
            volume: Volume identifier.
            start: Inclusive lower bound (naive UTC).
            end: Exclusive upper bound (naive UTC).

        Returns:
            DataFrame with one row per request.
        """
        return self.store.execute(sql_queries.REQUESTS_IN_WINDOW_QUERY, [volume, start, end]).df()

    def app_summary(self, volume: str, start: datetime, end: datetime) -> pd.DataFrame:
        """Per-app request counts, unique clients, bytes, first/last seen."""
        return self.store.execute(sql_queries.APP_SUMMARY_QUERY, [volume, start, end]).df()

    def window_totals(self, volume: str, start: datetime, end: datetime) -> tuple[int, int]:
        """(requests, unique clients) for one window."""
        requests, clients = self.store.execute(sql_queries.WINDOW_TOTALS_QUERY, [volume, start, end]).fetchone()
        return int(requests), int(clients)

    def count_rows(self) -> int:
        return count_rows(self.store)
