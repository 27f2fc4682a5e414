"""Silence/black interval correlation."""

import logging
from typing import Iterable, Sequence

from adpoint.frames import FrameIndex
from adpoint.manifest import FrameConfig, MatchConfig
from adpoint.models import CandidatePeriod, FrameSample, Interval

logger = logging.getLogger(__name__)

CLOSE_POLICIES = ("union", "black")


def overlap(a: Interval, b: Interval) -> tuple[float, float] | None:
    """Intersection bounds of two intervals, or None if they don't intersect."""
    start = max(a.start, b.start)
    end = min(a.end, b.end)
    if start < end:
        return start, end
    return None


def close_overlap(
    silence: Interval,
    black: Interval,
    tolerance: float = 0.1,
    policy: str = "union",
) -> tuple[float, float] | None:
    """Combined span for intervals that intersect or nearly touch.

    Intersecting (or touching) intervals give their intersection. Intervals
    separated by a gap no wider than ``tolerance`` give the union of both, or
    the black interval's own bounds under the "black" policy.
    """
    if policy not in CLOSE_POLICIES:
        raise ValueError(f"Unknown close-overlap policy {policy!r}")
    max_start = max(silence.start, black.start)
    min_end = min(silence.end, black.end)
    gap = max(0.0, max_start - min_end)
    if gap <= 0:
        return max_start, min_end
    if gap <= tolerance:
        if policy == "black":
            return black.start, black.end
        return min(silence.start, black.start), max(silence.end, black.end)
    return None


def _chapter_near(silence: Interval, mark: float, proximity: float) -> bool:
    return (
        silence.start <= mark <= silence.end
        or abs(silence.start - mark) <= proximity
        or abs(silence.end - mark) <= proximity
    )


def match_intervals(
    silences: Iterable[Interval],
    blacks: Sequence[Interval],
    frames: FrameIndex | Sequence[FrameSample],
    config: MatchConfig | None = None,
    frame_config: FrameConfig | None = None,
) -> list[CandidatePeriod]:
    """Find candidate ad periods where silence and blackness coincide.

    Every silence is tested against every black interval, so one silence can
    yield several (possibly overlapping) candidates; merging is left to the
    caller. When no black intervals were detected directly they are
    synthesized from ``frames``.
    """
    config = config or MatchConfig()
    frame_config = frame_config or FrameConfig()
    index = frames if isinstance(frames, FrameIndex) else FrameIndex(frames)

    effective_blacks = list(blacks)
    if not effective_blacks and index:
        effective_blacks = index.synthesize_black_periods(
            min_duration=frame_config.synth_min_duration,
            threshold=frame_config.synth_black_pct,
            frame_duration=frame_config.frame_duration,
        )

    candidates: list[CandidatePeriod] = []
    for s in silences:
        matched = False
        for b in effective_blacks:
            bounds = overlap(s, b)
            if bounds and bounds[1] - bounds[0] >= config.min_duration:
                candidates.append(CandidatePeriod(start=bounds[0], end=bounds[1], kind="overlap"))
                matched = True

            span = close_overlap(s, b, config.tolerance, config.close_policy)
            if span is None or span[1] - span[0] < config.min_duration:
                continue
            if index.has_black(span[0], span[1], config.confirm_black_pct):
                candidates.append(CandidatePeriod(start=span[0], end=span[1], kind="close"))
                matched = True

        if matched or s.duration < config.chapter_min_duration:
            continue

        pad = config.chapter_search_padding
        for mark in config.chapter_marks:
            if not _chapter_near(s, mark, config.chapter_proximity):
                continue
            if index.has_black(s.start - pad, s.end + pad, config.confirm_black_pct):
                logger.debug("Silence %.3f-%.3f confirmed by chapter mark %.3f", s.start, s.end, mark)
                candidates.append(CandidatePeriod(start=s.start, end=s.end, kind="chapter"))
                break

    candidates.sort(key=lambda c: c.start)
    logger.debug(
        "Matched %d candidates from %d black intervals",
        len(candidates), len(effective_blacks),
    )
    return candidates
