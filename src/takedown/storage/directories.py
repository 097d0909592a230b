from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from takedown.constants import (
    ACCESS_LOG_DIRNAME,
    ACCESS_LOG_SUFFIX,
    APP_LIST_RELPATH,
    PROGRESS_FILENAME,
    PSEUDO_DIRS,
    REPORT_FILENAME,
    STORE_FILENAME,
)
from takedown.core.config import JobConfig
from takedown.core.errors import ConfigError, LogDirectoryError, StorageError
from takedown.core.models import ResolvedPaths

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Path resolution (pure)
# ---------------------------------------------------------------------------


def default_install_root() -> Path:
    """Directory of the installed `takedown` package."""
    return Path(__file__).resolve().parent.parent


def default_app_list_path(install_root: Path) -> Path:
    return install_root / APP_LIST_RELPATH


def resolve_paths(job: JobConfig, app_list_file: Path) -> ResolvedPaths:
    """Derive every location used by a run.

    Layout: <output_dir>/<ticket>/
              progress.yml
              results.duckdb
              report.txt
              grepped_access_logs/
    """
    output_dir = Path(job.output_dir) / job.ticket
    return ResolvedPaths(
        output_dir=output_dir,
        access_log_dir=output_dir / ACCESS_LOG_DIRNAME,
        progress_file=output_dir / PROGRESS_FILENAME,
        app_list_file=Path(app_list_file),
        store_file=output_dir / STORE_FILENAME,
        report_file=output_dir / REPORT_FILENAME,
    )


# ---------------------------------------------------------------------------
# Log directory discovery
# ---------------------------------------------------------------------------


def get_log_dirs(parent_dir: Path, skip_dirs: Iterable[str], sub_dir_path: str = "") -> list[str]:
    """List directories directly under `parent_dir`, hidden ones included.

    Parameters
    ----------
    parent_dir : Path
        Directory whose children are candidate log directories.
    skip_dirs : Iterable[str]
        Directory *names* (not paths) to leave out.
    sub_dir_path : str
        Suffix appended under each discovered directory, e.g. "logs".

    Returns
    -------
    list[str]
        Relative directory paths, sorted by directory name.
    """
    skip = set(skip_dirs or ()) | PSEUDO_DIRS
    try:
        with os.scandir(parent_dir) as it:
            names = sorted(e.name for e in it if e.is_dir() and e.name not in skip)
    except OSError as e:
        raise LogDirectoryError(f"cannot list parent directory {parent_dir}: {e}") from e

    suffix = sub_dir_path.strip("/")
    if not suffix:
        return names
    return [os.path.join(name, suffix) for name in names]


def output_log_name(relative_dir: str) -> str:
    """Flatten a relative directory into an extracted-log filename."""
    flat = relative_dir.strip(os.sep).replace(os.sep, "-")
    if os.altsep:
        flat = flat.replace(os.altsep, "-")
    return f"{flat}{ACCESS_LOG_SUFFIX}"


def build_directory_map(
    parent_dir: Path,
    relative_dirs: Iterable[str],
    access_log_dir: Path,
) -> dict[Path, Path]:
    """Map each absolute input directory to its extracted-log output file."""
    parent = Path(os.path.abspath(parent_dir))
    out: dict[Path, Path] = {}
    seen_outputs: set[Path] = set()
    for rel in relative_dirs:
        input_dir = parent / rel
        output_file = access_log_dir / output_log_name(rel)
        if input_dir in out:
            raise ConfigError(f"log directory listed twice: {input_dir}")
        if output_file in seen_outputs:
            raise ConfigError(f"two log directories flatten to the same output file: {output_file}")
        out[input_dir] = output_file
        seen_outputs.add(output_file)
    return out


# ---------------------------------------------------------------------------
# Filesystem side effects
# ---------------------------------------------------------------------------


def ensure_output_dirs(paths: ResolvedPaths) -> None:
    """Create the output and access-log directories (idempotent)."""
    for d in (paths.output_dir, paths.access_log_dir):
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create output directory {d}: {e}") from e


def remove_if_exists(path: Path) -> bool:
    """Delete `path` if it is a file. Returns True when something was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StorageError(f"cannot remove {path}: {e}") from e
    logger.debug("removed %s", path)
    return True
