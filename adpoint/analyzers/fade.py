"""Fade-to-black ad break analyzer."""

import logging
from pathlib import Path
from typing import Callable

from adpoint import ffutil
from adpoint.frames import FrameIndex
from adpoint.manifest import DetectionConfig
from adpoint.matcher import match_intervals
from adpoint.models import AnalysisReports, Period, ProbeResult
from adpoint.parsing import parse_black, parse_frames, parse_silence
from adpoint.periods import filter_edges, merge_periods

logger = logging.getLogger(__name__)


def detect_fade_periods(
    reports: AnalysisReports,
    config: DetectionConfig,
    duration: float,
) -> list[Period]:
    """Run the detection core over already-captured analysis reports.

    Returns merged periods outside the edge exclusion zone, in start order.
    An empty list means no insertion point was found.
    """
    silences = parse_silence(reports.silence, config.silence.min_duration, reports.offset)
    blacks = parse_black(reports.black, config.black.min_duration, reports.offset)
    frames = FrameIndex(parse_frames(reports.frames, reports.offset))
    logger.info(
        "Parsed %d silences, %d black regions, %d frames",
        len(silences), len(blacks), len(frames),
    )

    candidates = match_intervals(silences, blacks, frames, config.match, config.frames)
    merged = merge_periods(candidates, gap=config.merge.gap)
    periods = filter_edges(merged, duration, margin=config.merge.edge_margin)
    logger.info(
        "%d candidates -> %d merged -> %d reportable",
        len(candidates), len(merged), len(periods),
    )
    return periods


def analyze_fade_to_black(
    input_path: Path,
    config: DetectionConfig,
    probe_result: ProbeResult,
    start: float | None = None,
    end: float | None = None,
    on_progress: Callable[[float], None] | None = None,
) -> list[Period]:
    """Run the ffmpeg analysis passes on ``input_path`` and detect ad periods."""
    def _progress(frac: float) -> None:
        if on_progress:
            on_progress(frac)

    _progress(0.0)
    reports = ffutil.collect_reports(
        input_path, config, start=start, end=end, has_audio=probe_result.has_audio,
    )
    _progress(0.9)
    periods = detect_fade_periods(reports, config, probe_result.duration)
    _progress(1.0)
    return periods
