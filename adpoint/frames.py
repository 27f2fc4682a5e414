"""Timestamp-ordered frame samples and black-period synthesis."""

import logging
from bisect import bisect_left, bisect_right, insort
from typing import Iterable, Iterator

from adpoint.models import BlackInterval, FrameSample

logger = logging.getLogger(__name__)

DEFAULT_FRAME_DURATION = 1.0 / 29.97


class FrameIndex:
    """Frame samples kept sorted by timestamp.

    Samples added with equal timestamps keep their insertion order. Range
    queries are bisect lookups rather than full scans, so confirming a
    candidate against a long video stays cheap.
    """

    def __init__(self, samples: Iterable[FrameSample] = ()) -> None:
        self._keys: list[tuple[float, int]] = []
        self._samples: list[FrameSample] = []
        self._seq = 0
        for sample in samples:
            self.add(sample)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[FrameSample]:
        return iter(self._samples)

    def __bool__(self) -> bool:
        return bool(self._samples)

    @property
    def samples(self) -> list[FrameSample]:
        return list(self._samples)

    def add(self, sample: FrameSample) -> None:
        key = (sample.timestamp, self._seq)
        self._seq += 1
        pos = bisect_right(self._keys, key)
        self._keys.insert(pos, key)
        self._samples.insert(pos, sample)

    def _bounds(self, start: float, end: float) -> tuple[int, int]:
        lo = bisect_left(self._keys, (start, -1))
        hi = bisect_right(self._keys, (end, self._seq))
        return lo, hi

    def in_range(self, start: float, end: float) -> list[FrameSample]:
        """Samples with ``start <= timestamp <= end``."""
        if end < start:
            return []
        lo, hi = self._bounds(start, end)
        return self._samples[lo:hi]

    def has_black(self, start: float, end: float, threshold: int) -> bool:
        """True if any sample in [start, end] is at least ``threshold`` percent black."""
        return any(f.black_percentage >= threshold for f in self.in_range(start, end))

    def nearest(self, timestamp: float, tolerance: float) -> FrameSample | None:
        """The earliest-added sample strictly within ``tolerance`` of ``timestamp``."""
        lo, hi = self._bounds(timestamp - tolerance, timestamp + tolerance)
        best: tuple[int, FrameSample] | None = None
        for (ts, seq), sample in zip(self._keys[lo:hi], self._samples[lo:hi]):
            if abs(ts - timestamp) < tolerance and (best is None or seq < best[0]):
                best = (seq, sample)
        return best[1] if best else None

    def synthesize_black_periods(
        self,
        min_duration: float = 0.01,
        threshold: int = 95,
        frame_duration: float = DEFAULT_FRAME_DURATION,
    ) -> list[BlackInterval]:
        """Build black intervals from runs of consecutive black frames.

        A run opens at the first sample at or above ``threshold`` and closes
        at the first sample below it (or at the end of the sequence). Each
        sample stands for a whole frame, so the closing time is the last black
        timestamp plus ``frame_duration``.
        """
        periods: list[BlackInterval] = []
        run_start: float | None = None
        last_black = 0.0

        def close_run() -> None:
            end = last_black + frame_duration
            if end - run_start >= min_duration:
                periods.append(BlackInterval(start=run_start, end=end))

        for f in self._samples:
            if f.black_percentage >= threshold:
                if run_start is None:
                    run_start = f.timestamp
                last_black = f.timestamp
            elif run_start is not None:
                close_run()
                run_start = None

        if run_start is not None:
            close_run()

        logger.debug(
            "Synthesized %d black periods from %d frames (>= %d%%)",
            len(periods), len(self._samples), threshold,
        )
        return periods
