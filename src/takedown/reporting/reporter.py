"""Plain-text usage report, one section per (volume, time window).

The rendered text depends only on the store contents and the order in which
windows were added, so rendering the same store twice is byte-identical.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pandas as pd

from takedown.core.interfaces import IQueryEngine, IReporter

REPORT_TITLE = "Access log usage report"
EMPTY_WINDOW_TEXT = "No matching requests."
_TS_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(slots=True, frozen=True)
class ReportSection:
    volume_id: str
    start: datetime
    end: datetime
    requests: int
    unique_clients: int
    apps: pd.DataFrame


def _fmt_ts(value: object) -> str:
    if value is None or pd.isna(value):
        return "-"
    if isinstance(value, datetime):
        return value.strftime(_TS_FORMAT)
    return pd.Timestamp(value).strftime(_TS_FORMAT)


def _render_apps(apps: pd.DataFrame) -> str:
    table = apps.copy()
    for col in ("first_seen", "last_seen"):
        table[col] = table[col].map(_fmt_ts)
    for col in ("requests", "unique_clients", "bytes"):
        table[col] = table[col].astype("int64")
    return table.to_string(index=False)


class Reporter(IReporter):
    def __init__(self, query_engine: IQueryEngine) -> None:
        self.query_engine = query_engine
        self.sections: list[ReportSection] = []

    def add_volume_to_report(self, volume_id: str, start: datetime, end: datetime) -> None:
        """Query one window and keep its figures for rendering."""
        requests, clients = self.query_engine.window_totals(volume_id, start, end)
        apps = self.query_engine.app_summary(volume_id, start, end)
        self.sections.append(
            ReportSection(
                volume_id=volume_id,
                start=start,
                end=end,
                requests=requests,
                unique_clients=clients,
                apps=apps,
            )
        )

    def render_section(self, section: ReportSection) -> str:
        header = f"Volume {section.volume_id}: {_fmt_ts(section.start)} -> {_fmt_ts(section.end)}"
        lines = [header, "-" * len(header)]
        if section.requests == 0:
            lines.append(EMPTY_WINDOW_TEXT)
            return "\n".join(lines)
        lines.append(f"Requests: {section.requests}")
        lines.append(f"Unique clients: {section.unique_clients}")
        lines.append("")
        lines.append(_render_apps(section.apps))
        return "\n".join(lines)

    def report(self) -> str:
        """Render every accumulated section, in insertion order."""
        parts = [REPORT_TITLE, "=" * len(REPORT_TITLE), ""]
        if not self.sections:
            parts.append("No volumes in scope.")
        for section in self.sections:
            parts.append(self.render_section(section))
            parts.append("")
        return "\n".join(parts).rstrip("\n") + "\n"
