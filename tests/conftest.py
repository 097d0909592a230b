from __future__ import annotations

import gzip
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from takedown.core.config import AppList, JobConfig
from takedown.core.models import ResolvedPaths
from takedown.orchestration.orchestrator import CollaboratorFactories
from takedown.storage.directories import resolve_paths

V1_IN_WINDOW = (
    '10.0.0.1 - - [01/Jan/2024:12:00:00 +0000] "GET /nextcloud/s/v1 HTTP/1.1" 200 512 "-" "Mozilla/5.0 test"'
)
V1_LATE = (
    '10.0.0.9 - - [03/Jan/2024:12:00:00 +0000] "GET /nextcloud/s/v1 HTTP/1.1" 200 64 "-" "Mozilla/5.0 test"'
)
V10_OTHER = (
    '10.0.0.2 - - [01/Jan/2024:12:30:00 +0000] "GET /nextcloud/s/v10 HTTP/1.1" 200 64 "-" "curl/8.0"'
)
NOISE = '10.0.0.3 - - [01/Jan/2024:12:45:00 +0000] "GET /index.html HTTP/1.1" 200 10 "-" "curl/8.0"'


def write_yaml(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


@pytest.fixture
def app_list_file(tmp_path: Path) -> Path:
    return write_yaml(
        tmp_path / "apps.yml",
        {"apps": [{"name": "nextcloud", "pattern": "/nextcloud/"}]},
    )


@pytest.fixture
def parent_dir(tmp_path: Path) -> Path:
    """Two log directories `a` and `b`, each with a `logs/` subdirectory."""
    parent = tmp_path / "archive"
    (parent / "a" / "logs").mkdir(parents=True)
    (parent / "b" / "logs").mkdir(parents=True)
    (parent / "a" / "logs" / "access.log").write_text("\n".join([V1_IN_WINDOW, V1_LATE, V10_OTHER, NOISE]) + "\n")
    with gzip.open(parent / "b" / "logs" / "access.log.1.gz", "wt") as fh:
        fh.write(NOISE + "\n")
    return parent


@pytest.fixture
def job_data(tmp_path: Path, parent_dir: Path) -> dict[str, Any]:
    return {
        "ticket": "T-1",
        "output_dir": str(tmp_path / "out"),
        "parent_dir": str(parent_dir),
        "skip_dirs": [],
        "sub_dir_path": "logs",
        "volumes": {
            "v1": [{"start": "2024-01-01T00:00:00", "end": "2024-01-02T00:00:00"}],
        },
    }


@pytest.fixture
def job_file(tmp_path: Path, job_data: dict[str, Any]) -> Path:
    return write_yaml(tmp_path / "job.yml", job_data)


@pytest.fixture
def job(job_data: dict[str, Any]) -> JobConfig:
    return JobConfig.model_validate(job_data)


@pytest.fixture
def apps() -> AppList:
    return AppList.model_validate({"apps": [{"name": "nextcloud", "pattern": "/nextcloud/"}]})


@pytest.fixture
def paths(job: JobConfig, app_list_file: Path) -> ResolvedPaths:
    return resolve_paths(job, app_list_file)


@pytest.fixture
def factories() -> CollaboratorFactories:
    """Collaborator doubles; the extractor touches its output file like the real one."""
    f = CollaboratorFactories(
        extractor=MagicMock(name="extractor"),
        loader=MagicMock(name="loader"),
        pruner=MagicMock(name="pruner"),
        query_engine=MagicMock(name="query_engine"),
        reporter=MagicMock(name="reporter"),
        open_store=MagicMock(name="open_store"),
        discard_store=MagicMock(name="discard_store"),
    )
    f.extractor.return_value.process.side_effect = lambda input_dir, output_file: output_file.write_text("")
    f.reporter.return_value.report.return_value = "report\n"
    return f
