"""Tests for the shared data types."""

import dataclasses

import pytest

from adpoint.models import BlackInterval, CandidatePeriod, Interval, Period, SilenceInterval


class TestInterval:
    def test_duration_and_midpoint(self):
        p = Period(10.0, 12.0)
        assert p.duration == 2.0
        assert p.midpoint == 11.0

    def test_zero_length_allowed(self):
        assert Interval(3.0, 3.0).duration == 0.0

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="precedes"):
            Interval(2.0, 1.0)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Interval(1.0, 2.0).start = 0.0

    def test_source_tags(self):
        assert SilenceInterval.source == "silence"
        assert BlackInterval.source == "black"

    def test_candidate_default_kind(self):
        assert CandidatePeriod(1.0, 2.0).kind == "overlap"
