"""Storage components: path layout, progress tracking, and the DuckDB store.

This package provides:
- resolve_paths / get_log_dirs / build_directory_map: run layout and discovery
- ProgressStore: durable stage completion record
- store: DuckDB connection helpers for the `access_log` table
"""

from takedown.storage.directories import (
    build_directory_map,
    default_app_list_path,
    default_install_root,
    ensure_output_dirs,
    get_log_dirs,
    output_log_name,
    remove_if_exists,
    resolve_paths,
)
from takedown.storage.progress import ProgressStore

__all__ = [
    "build_directory_map",
    "default_app_list_path",
    "default_install_root",
    "ensure_output_dirs",
    "get_log_dirs",
    "output_log_name",
    "remove_if_exists",
    "resolve_paths",
    "ProgressStore",
]
