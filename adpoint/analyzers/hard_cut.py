"""Hard-cut ad break analyzer: scene changes that land inside a silence."""

from pathlib import Path
from typing import Iterable, Sequence

from adpoint import ffutil
from adpoint.manifest import DetectionConfig, SilenceConfig
from adpoint.models import Interval, Period, ProbeResult
from adpoint.parsing import parse_scene_times, parse_silence


def find_silent_scenes(
    silences: Sequence[Interval],
    scenes: Iterable[float],
    min_silence_duration: float = 0.01,
) -> list[float]:
    """Scene-change times falling in ``[start, end)`` of a long-enough silence."""
    hits = []
    for t in scenes:
        for s in silences:
            if s.start <= t < s.end and s.duration >= min_silence_duration:
                hits.append(t)
                break
    return sorted(hits)


def filter_points(points: Iterable[float], duration: float, margin: float = 1.0) -> list[float]:
    return [p for p in points if margin < p < duration - margin]


def analyze_hard_cuts(
    input_path: Path,
    config: DetectionConfig,
    probe_result: ProbeResult,
    start: float | None = None,
    end: float | None = None,
) -> list[Period]:
    """Detect silent scene cuts; each is reported as a zero-length period."""
    hc = config.hard_cut
    if not probe_result.has_audio:
        return []

    offset = start if start is not None and end is not None else 0.0
    silence_cfg = SilenceConfig(threshold_db=hc.threshold_db, detect_duration=hc.min_duration)
    silences = parse_silence(
        ffutil.silence_report(input_path, silence_cfg, start, end), hc.min_duration, offset,
    )
    scenes = parse_scene_times(
        ffutil.scene_report(input_path, hc.scene_threshold, start, end), offset,
    )

    points = filter_points(
        find_silent_scenes(silences, scenes, hc.min_duration),
        probe_result.duration,
        margin=config.merge.edge_margin,
    )
    return [Period(start=p, end=p) for p in points]
