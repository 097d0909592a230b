"""Line extraction: find access-log lines for tracked apps and volumes.

A line is kept when
- one of the app patterns matches it (first app in list order wins), and
- one of the volume ids appears in it as a whole token (first volume in sorted
  order wins). Token boundaries are the line ends or any character outside
  ``[A-Za-z0-9_-]``.

Matches are written as JSON lines (`ExtractedRecord`) so the loader never has
to re-run the matching.
"""

from __future__ import annotations

import gzip
import logging
import os
import re
import zlib
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import IO

from takedown.core.config import AppSpec
from takedown.core.errors import ExtractionError
from takedown.core.interfaces import IExtractor
from takedown.core.models import ExtractedRecord

logger = logging.getLogger(__name__)

_TOKEN_CHARS = r"A-Za-z0-9_\-"


def volume_token_regex(volume_id: str) -> re.Pattern[str]:
    """Regex matching `volume_id` only as a standalone token."""
    return re.compile(rf"(?<![{_TOKEN_CHARS}]){re.escape(volume_id)}(?![{_TOKEN_CHARS}])")


def iter_log_files(root: Path) -> Iterator[Path]:
    """Yield regular files under `root` recursively, in a stable order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            p = Path(dirpath) / name
            if p.is_file():
                yield p


def _open_text(path: Path) -> IO[str]:
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8", errors="replace")
    return open(path, encoding="utf-8", errors="replace")


class Extractor(IExtractor):
    """Greps log directories for lines that mention a tracked app and volume."""

    def __init__(self, apps: Iterable[AppSpec], volume_ids: Iterable[str]) -> None:
        self.apps: list[tuple[str, re.Pattern[str]]] = [(a.name, re.compile(a.pattern)) for a in apps]
        self.volumes: list[tuple[str, re.Pattern[str]]] = [
            (v, volume_token_regex(v)) for v in sorted(set(volume_ids))
        ]

    def match(self, line: str) -> tuple[str, str] | None:
        """Return (app, volume) for a matching line, else None."""
        volume = None
        for vid, rx in self.volumes:
            # cheap substring test before the boundary regex
            if vid in line and rx.search(line):
                volume = vid
                break
        if volume is None:
            return None
        for name, rx in self.apps:
            if rx.search(line):
                return name, volume
        return None

    def iter_matches(self, input_dir: Path) -> Iterator[ExtractedRecord]:
        for path in iter_log_files(input_dir):
            with _open_text(path) as fh:
                for line_no, raw in enumerate(fh, start=1):
                    line = raw.rstrip("\r\n")
                    hit = self.match(line)
                    if hit is None:
                        continue
                    app, volume = hit
                    yield ExtractedRecord(
                        app=app,
                        volume=volume,
                        source=str(path),
                        line_no=line_no,
                        line=line,
                    )

    def process(self, input_dir: Path, output_file: Path) -> int:
        """Write all matches under `input_dir` to `output_file` (overwriting)."""
        input_dir = Path(input_dir)
        output_file = Path(output_file)
        if not input_dir.is_dir():
            logger.warning("log directory %s does not exist; writing empty %s", input_dir, output_file.name)

        tmp = output_file.with_name(output_file.name + ".tmp")
        written = 0
        try:
            with open(tmp, "w", encoding="utf-8") as out:
                if input_dir.is_dir():
                    for rec in self.iter_matches(input_dir):
                        out.write(rec.to_json_line())
                        written += 1
                out.flush()
                os.fsync(out.fileno())
            os.replace(tmp, output_file)
        except (OSError, EOFError, zlib.error) as e:
            tmp.unlink(missing_ok=True)
            raise ExtractionError(f"extracting {input_dir} -> {output_file}: {e}") from e

        logger.info("extracted %d lines from %s", written, input_dir)
        return written
