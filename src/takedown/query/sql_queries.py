"""
sql_queries.py
--------------

Centralized SQL for the `access_log` store.

All statements take positional parameters; window bounds are half-open
``[start, end)``.
"""

# =====================================================================
# PRUNING
# =====================================================================

# `scope_windows` is a registered frame: (volume, start_ts, end_ts)
PRUNE_OUT_OF_SCOPE_QUERY = """
DELETE FROM access_log
WHERE ts IS NULL
   OR NOT EXISTS (
        SELECT 1
        FROM scope_windows w
        WHERE w.volume = access_log.volume
          AND access_log.ts >= w.start_ts
          AND access_log.ts <  w.end_ts
   );
"""

PRUNE_ALL_QUERY = """
DELETE FROM access_log;
"""


# =====================================================================
# WINDOW LOOKUPS
# =====================================================================

REQUESTS_IN_WINDOW_QUERY = """
SELECT
  app,
  volume,
  ts,
  client,
  method,
  path,
  status,
  size,
  source,
  line_no
FROM access_log
WHERE volume = ?
  AND ts >= ?
  AND ts <  ?
ORDER BY ts, app, source, line_no;
"""

APP_SUMMARY_QUERY = """
SELECT
  app,
  count(*)                   AS requests,
  count(DISTINCT client)     AS unique_clients,
  CAST(coalesce(sum(size), 0) AS BIGINT) AS bytes,
  min(ts)                    AS first_seen,
  max(ts)                    AS last_seen
FROM access_log
WHERE volume = ?
  AND ts >= ?
  AND ts <  ?
GROUP BY app
ORDER BY app;
"""

WINDOW_TOTALS_QUERY = """
SELECT
  count(*)                   AS requests,
  count(DISTINCT client)     AS unique_clients
FROM access_log
WHERE volume = ?
  AND ts >= ?
  AND ts <  ?;
"""
