from __future__ import annotations

# stage names, in execution order
STAGE_EXTRACT = "extract"
STAGE_LOAD    = "load"
STAGE_PRUNE   = "prune"
STAGE_REPORT  = "report"
STAGES: tuple[str, ...] = (STAGE_EXTRACT, STAGE_LOAD, STAGE_PRUNE, STAGE_REPORT)

# layout under <output_dir>/<ticket>/
ACCESS_LOG_DIRNAME = "grepped_access_logs"
PROGRESS_FILENAME  = "progress.yml"
STORE_FILENAME     = "results.duckdb"
REPORT_FILENAME    = "report.txt"
ACCESS_LOG_SUFFIX  = "-access.log"

# packaged application list, relative to the install root
APP_LIST_RELPATH = "data/app_list.yml"

# pseudo-entries never treated as log directories
PSEUDO_DIRS = frozenset({".", ".."})
