import gzip
import json
from pathlib import Path

import pytest

from takedown.core.config import AppSpec
from takedown.core.errors import ExtractionError
from takedown.extraction.extractor import Extractor

from conftest import NOISE, V1_IN_WINDOW, V10_OTHER


@pytest.fixture
def extractor() -> Extractor:
    return Extractor(
        [AppSpec(name="nextcloud", pattern="/nextcloud/"), AppSpec(name="any-get", pattern='"GET ')],
        ["v1", "v10"],
    )


def _records(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_volume_matches_whole_token_only(extractor: Extractor) -> None:
    assert extractor.match(V1_IN_WINDOW) == ("nextcloud", "v1")
    assert extractor.match(V10_OTHER) == ("nextcloud", "v10")
    assert extractor.match("GET /nextcloud/s/v1x") is None
    assert extractor.match("GET /nextcloud/s/av1") is None


def test_first_app_in_list_order_wins(extractor: Extractor) -> None:
    assert extractor.match('"GET /nextcloud/v1"')[0] == "nextcloud"
    assert extractor.match('"GET /other/v1"')[0] == "any-get"


def test_line_without_app_or_volume_is_dropped(extractor: Extractor) -> None:
    assert extractor.match(NOISE) is None
    assert extractor.match("PUT /other/v1") is None


def test_process_walks_plain_and_gzip_files(extractor: Extractor, tmp_path: Path) -> None:
    src = tmp_path / "logs"
    (src / "old").mkdir(parents=True)
    (src / "access.log").write_text(NOISE + "\n" + V1_IN_WINDOW + "\n")
    with gzip.open(src / "old" / "access.log.1.gz", "wt") as fh:
        fh.write(V10_OTHER + "\n")
    out = tmp_path / "out.log"

    written = extractor.process(src, out)

    recs = _records(out)
    assert written == 2
    assert [(r["app"], r["volume"], r["line_no"]) for r in recs] == [("nextcloud", "v1", 2), ("nextcloud", "v10", 1)]
    assert recs[0]["line"] == V1_IN_WINDOW
    assert recs[0]["source"] == str(src / "access.log")


def test_process_overwrites_previous_output(extractor: Extractor, tmp_path: Path) -> None:
    src = tmp_path / "logs"
    src.mkdir()
    (src / "access.log").write_text(V1_IN_WINDOW + "\n")
    out = tmp_path / "out.log"
    out.write_text("stale\n")

    extractor.process(src, out)
    first = out.read_bytes()
    extractor.process(src, out)

    assert out.read_bytes() == first
    assert b"stale" not in first


def test_missing_input_dir_writes_empty_file(extractor: Extractor, tmp_path: Path) -> None:
    out = tmp_path / "out.log"
    assert extractor.process(tmp_path / "missing", out) == 0
    assert out.read_text() == ""


@pytest.mark.parametrize(
    "payload",
    [
        # valid gzip header, deflate block with reserved type
        b"\x1f\x8b\x08\x00\x00\x00\x00\x00\x00\xff" + b"\xff" * 16,
        # stream cut off mid-member
        gzip.compress((V1_IN_WINDOW + "\n").encode())[:-12],
    ],
    ids=["bad-deflate", "truncated"],
)
def test_corrupt_gzip_raises_and_leaves_no_partial_output(
    extractor: Extractor, tmp_path: Path, payload: bytes
) -> None:
    src = tmp_path / "logs"
    src.mkdir()
    (src / "access.log").write_text(V1_IN_WINDOW + "\n")
    (src / "access.log.1.gz").write_bytes(payload)
    out = tmp_path / "out.log"
    out.write_text("previous\n")

    with pytest.raises(ExtractionError, match="extracting"):
        extractor.process(src, out)

    assert out.read_text() == "previous\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["logs", "out.log"]
