"""Access-log line parsing (Common and Combined Log Format).

    127.0.0.1 - frank [10/Oct/2000:13:55:36 -0700] "GET /a.gif HTTP/1.0" 200 2326 "ref" "agent"

Lines that do not parse keep only their raw text; the pruner later drops
rows without a timestamp.
"""

from __future__ import annotations

import re
from datetime import datetime

from takedown.core.config import to_utc_naive
from takedown.core.models import AccessRow, ExtractedRecord

CLF_RE = re.compile(
    r'^(?P<client>\S+) \S+ \S+ \[(?P<ts>[^\]]+)\] "(?P<request>[^"]*)" '
    r'(?P<status>\d{3}|-) (?P<size>\d+|-)'
    r'(?: "(?P<referrer>[^"]*)" "(?P<agent>[^"]*)")?'
)

_MONTHS = {m: i for i, m in enumerate(
    ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"), start=1)}
_CLF_TS_RE = re.compile(
    r"^(?P<d>\d{1,2})/(?P<mon>[A-Za-z]{3})/(?P<y>\d{4}):(?P<H>\d{2}):(?P<M>\d{2}):(?P<S>\d{2})"
    r"(?: (?P<tz>[+-]\d{4}))?$"
)


def parse_clf_timestamp(value: str) -> datetime | None:
    """Parse `10/Oct/2000:13:55:36 -0700` into naive UTC, or None."""
    m = _CLF_TS_RE.match(value.strip())
    if not m:
        return None
    month = _MONTHS.get(m["mon"].title())
    if month is None:
        return None
    tz = m["tz"] or "+0000"
    try:
        dt = datetime.strptime(
            f"{m['y']}-{month:02d}-{int(m['d']):02d} {m['H']}:{m['M']}:{m['S']} {tz}",
            "%Y-%m-%d %H:%M:%S %z",
        )
    except ValueError:
        return None
    return to_utc_naive(dt)


def _dash_none(v: str | None) -> str | None:
    return None if v in (None, "-") else v


def parse_access_line(rec: ExtractedRecord) -> AccessRow:
    """Build a store row from an extracted record."""
    row = AccessRow(app=rec.app, volume=rec.volume, source=rec.source, line_no=rec.line_no, raw=rec.line)
    m = CLF_RE.match(rec.line)
    if not m:
        return row

    row.client = m["client"]
    row.ts = parse_clf_timestamp(m["ts"])
    parts = m["request"].split()
    if len(parts) >= 2:
        row.method, row.path = parts[0], parts[1]
    elif len(parts) == 1:
        row.path = parts[0]
    status = _dash_none(m["status"])
    row.status = int(status) if status is not None else None
    size = _dash_none(m["size"])
    row.size = int(size) if size is not None else None
    row.referrer = _dash_none(m["referrer"])
    row.agent = _dash_none(m["agent"])
    return row
