from pathlib import Path

import pytest

from takedown.core.errors import ConfigError
from takedown.core.models import ProgressRecord
from takedown.storage.progress import ProgressStore


def test_load_creates_missing_record(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "out" / "progress.yml")

    record = store.load()

    assert record == ProgressRecord()
    assert store.path.is_file()


def test_peek_does_not_create(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "progress.yml")
    assert store.peek() == ProgressRecord()
    assert not store.exists()


def test_empty_file_reads_as_fresh(tmp_path: Path) -> None:
    path = tmp_path / "progress.yml"
    path.write_text("")
    assert ProgressStore(path).load() == ProgressRecord()


def test_mark_done_persists_immediately(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "progress.yml")
    record = store.load()

    record = store.mark_done(record, "extract")

    assert ProgressStore(store.path).load() == ProgressRecord(extract=True)
    assert record.extract
    assert not (tmp_path / "progress.yml.tmp").exists()


def test_unknown_keys_survive_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "progress.yml"
    path.write_text("extract: true\nexport: false\n")
    store = ProgressStore(path)

    store.save(store.load().with_done("load"))

    text = path.read_text()
    assert "export: false" in text
    assert store.load().is_done("load")


def test_malformed_record_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "progress.yml"
    path.write_text("extract: [1, 2]\n")
    with pytest.raises(ConfigError):
        ProgressStore(path).load()


def test_non_mapping_record_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "progress.yml"
    path.write_text("- extract\n")
    with pytest.raises(ConfigError):
        ProgressStore(path).load()


def test_unknown_stage_name_rejected() -> None:
    with pytest.raises(KeyError):
        ProgressRecord().with_done("grep")
