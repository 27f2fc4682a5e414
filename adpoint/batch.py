"""Run detection over many files on a bounded worker pool."""

import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from adpoint.engine import EngineResult, process
from adpoint.manifest import DetectionConfig, Manifest

logger = logging.getLogger(__name__)

VIDEO_SUFFIXES = {".mp4", ".mkv", ".mov", ".m4v", ".ts", ".avi", ".webm"}


@dataclass
class BatchItem:
    input_path: Path
    result: EngineResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def scan_videos(input_dir: Path) -> list[Path]:
    """Video files under ``input_dir``, sorted by name."""
    videos = [p for p in input_dir.rglob("*") if p.is_file() and p.suffix.lower() in VIDEO_SUFFIXES]
    return sorted(videos, key=lambda p: str(p).lower())


def _run_one(path: Path, detection: DetectionConfig) -> EngineResult:
    return process(Manifest(input=path, detection=detection))


def run_batch(
    inputs: Iterable[Path],
    detection: DetectionConfig,
    max_workers: int | None = None,
) -> list[BatchItem]:
    """Detect ad periods in every input; one failure never stops the others.

    Results come back in input order. ``max_workers`` defaults to the number
    of CPUs, since each job is dominated by its ffmpeg subprocesses.
    """
    paths = list(dict.fromkeys(inputs))
    items = {path: BatchItem(input_path=path) for path in paths}
    if not paths:
        return []

    workers = max(1, min(max_workers or os.cpu_count() or 1, len(paths)))
    logger.info("Running %d jobs on %d workers", len(paths), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(_run_one, path, detection): path for path in paths}
        for future in as_completed(futures):
            path = futures[future]
            try:
                items[path].result = future.result()
            except subprocess.CalledProcessError as e:
                stderr = e.stderr if isinstance(e.stderr, str) else (e.stderr or b"").decode(errors="replace")
                items[path].error = f"ffprobe failed: {stderr[-500:]}" if stderr else str(e)
                logger.error("%s: %s", path, items[path].error)
            except Exception as e:
                items[path].error = str(e)
                logger.error("%s: %s", path, e)

    return [items[path] for path in paths]
