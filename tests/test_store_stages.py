from datetime import datetime
from pathlib import Path

import pytest

from takedown.core.config import TimeWindow
from takedown.core.errors import LoadError, StorageError
from takedown.core.models import ExtractedRecord
from takedown.loading.loader import Loader
from takedown.loading.parsing import parse_access_line, parse_clf_timestamp
from takedown.pruning.pruner import Pruner
from takedown.query.queryer import QueryEngine
from takedown.reporting.reporter import EMPTY_WINDOW_TEXT, Reporter
from takedown.storage import store

from conftest import V1_IN_WINDOW, V1_LATE

JAN1 = datetime(2024, 1, 1)
JAN2 = datetime(2024, 1, 2)


def _rec(line: str, volume: str = "v1", app: str = "nextcloud", line_no: int = 1) -> ExtractedRecord:
    return ExtractedRecord(app=app, volume=volume, source="/logs/access.log", line_no=line_no, line=line)


@pytest.fixture
def extracted_file(tmp_path: Path) -> Path:
    path = tmp_path / "a-logs-access.log"
    path.write_text(
        "".join(
            r.to_json_line()
            for r in [
                _rec(V1_IN_WINDOW, line_no=1),
                _rec(V1_LATE, line_no=2),
                _rec(V1_IN_WINDOW.replace("10.0.0.1", "10.0.0.7"), volume="v2", line_no=3),
                _rec("not an access log line v1", line_no=4),
            ]
        )
    )
    return path


@pytest.fixture
def loaded(tmp_path: Path, extracted_file: Path):
    loader = Loader(tmp_path / "results.duckdb")
    assert loader.load(extracted_file) == 4
    con = loader.get_store()
    yield con
    con.close()


def test_parse_clf_timestamp_converts_to_utc() -> None:
    assert parse_clf_timestamp("10/Oct/2000:13:55:36 -0700") == datetime(2000, 10, 10, 20, 55, 36)
    assert parse_clf_timestamp("garbage") is None


def test_parse_access_line_fields() -> None:
    row = parse_access_line(_rec(V1_IN_WINDOW))
    assert row.client == "10.0.0.1"
    assert row.ts == datetime(2024, 1, 1, 12)
    assert (row.method, row.path, row.status, row.size) == ("GET", "/nextcloud/s/v1", 200, 512)
    assert row.referrer is None
    assert row.agent == "Mozilla/5.0 test"


def test_unparseable_line_keeps_raw_text() -> None:
    row = parse_access_line(_rec("free text v1"))
    assert row.ts is None
    assert row.raw == "free text v1"


def test_loader_creates_schema_and_rows(loaded) -> None:
    assert store.count_rows(loaded) == 4
    nulls = loaded.execute("SELECT count(*) FROM access_log WHERE ts IS NULL").fetchone()[0]
    assert nulls == 1


def test_loader_rejects_malformed_record(tmp_path: Path) -> None:
    bad = tmp_path / "bad.log"
    bad.write_text('{"app": "x"}\n')
    loader = Loader(tmp_path / "results.duckdb")
    with pytest.raises(LoadError, match="bad.log:1"):
        loader.load(bad)
    loader.get_store().close()


def test_loader_flushes_in_batches(tmp_path: Path, extracted_file: Path) -> None:
    loader = Loader(tmp_path / "results.duckdb", batch_rows=1)
    assert loader.load(extracted_file) == 4
    assert store.count_rows(loader.get_store()) == 4
    loader.get_store().close()


def test_pruner_keeps_only_in_scope_rows(loaded) -> None:
    deleted = Pruner(loaded).prune({"v1": [TimeWindow(start=JAN1, end=JAN2)]})

    assert deleted == 3
    rows = loaded.execute("SELECT volume, client FROM access_log").fetchall()
    assert rows == [("v1", "10.0.0.1")]


def test_pruner_accepts_far_future_window_end(loaded) -> None:
    deleted = Pruner(loaded).prune({"v1": [TimeWindow(start=JAN1, end=datetime(9999, 12, 31))]})

    assert deleted == 2
    rows = loaded.execute("SELECT client FROM access_log ORDER BY ts").fetchall()
    assert rows == [("10.0.0.1",), ("10.0.0.9",)]

def test_pruner_with_no_windows_empties_store(loaded) -> None:
    assert Pruner(loaded).prune({"v1": []}) == 4
    assert store.count_rows(loaded) == 0


def test_query_engine_window_is_half_open(loaded) -> None:
    q = QueryEngine(loaded)
    assert len(q.requests_in_window("v1", JAN1, JAN2)) == 1
    assert len(q.requests_in_window("v1", JAN1, datetime(2024, 1, 1, 12))) == 0
    assert q.window_totals("v1", JAN1, JAN2) == (1, 1)

    summary = q.app_summary("v1", JAN1, JAN2)
    assert summary["app"].tolist() == ["nextcloud"]
    assert int(summary["bytes"].iloc[0]) == 512


def test_reporter_is_deterministic(loaded) -> None:
    def render() -> str:
        r = Reporter(QueryEngine(loaded))
        r.add_volume_to_report("v1", JAN1, JAN2)
        r.add_volume_to_report("v1", datetime(2025, 1, 1), datetime(2025, 1, 2))
        return r.report()

    text = render()

    assert text == render()
    assert "Volume v1: 2024-01-01 00:00:00 -> 2024-01-02 00:00:00" in text
    assert "Requests: 1" in text
    assert "nextcloud" in text
    assert "2024-01-01 12:00:00" in text
    assert text.count(EMPTY_WINDOW_TEXT) == 1


def test_open_existing_requires_store(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        store.open_existing(tmp_path / "results.duckdb")


def test_discard_removes_store_and_wal(tmp_path: Path) -> None:
    db = tmp_path / "results.duckdb"
    wal = tmp_path / "results.duckdb.wal"
    db.write_text("")
    wal.write_text("")

    store.discard(db)

    assert not db.exists() and not wal.exists()
