"""Candidate merging and edge exclusion."""

from typing import Iterable

from adpoint.models import Interval, Period


def merge_periods(periods: Iterable[Interval], gap: float = 0.0) -> list[Period]:
    """Merge overlapping or nearby periods into a disjoint, start-ordered list.

    Two periods merge when the earlier one's end plus ``gap`` reaches the
    later one's start. With ``gap=0`` only touching or overlapping periods
    merge.
    """
    ordered = sorted(periods, key=lambda p: (p.start, p.end))
    if not ordered:
        return []

    merged: list[Period] = []
    start, end = ordered[0].start, ordered[0].end
    for p in ordered[1:]:
        if end + gap >= p.start:
            end = max(end, p.end)
        else:
            merged.append(Period(start=start, end=end))
            start, end = p.start, p.end
    merged.append(Period(start=start, end=end))
    return merged


def filter_edges(periods: Iterable[Interval], duration: float, margin: float = 1.0) -> list[Period]:
    """Drop periods that start or end within ``margin`` of the media edges.

    Bounds are first clamped to [0, duration]; kept periods carry the
    clamped bounds.
    """
    kept: list[Period] = []
    for p in periods:
        start = max(p.start, 0.0)
        end = min(p.end, duration)
        if start > margin and end < duration - margin and end >= start:
            kept.append(Period(start=start, end=end))
    return kept
