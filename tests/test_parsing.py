"""Unit tests for the ffmpeg report parsers."""

import pytest

from adpoint.models import BlackInterval, SilenceInterval
from adpoint.parsing import (
    LineKind,
    classify_line,
    parse_black,
    parse_black_result,
    parse_frames,
    parse_frames_result,
    parse_scene_times,
    parse_silence,
    parse_silence_result,
)


# ---------------------------------------------------------------------------
# classify_line
# ---------------------------------------------------------------------------

class TestClassifyLine:
    @pytest.mark.parametrize("line, kind", [
        ("[silencedetect @ 0x1] silence_start: 1.5", LineKind.SILENCE_START),
        ("[silencedetect @ 0x1] silence_end: 3.2 | silence_duration: 1.7", LineKind.SILENCE_END),
        ("[blackdetect @ 0x1] black_start:1 black_end:2 black_duration:1", LineKind.BLACK_REGION),
        ("[Parsed_metadata_0 @ 0x1] lavfi.scene_score=0.5", LineKind.SCENE_SCORE),
        ("[Parsed_metadata_0 @ 0x1] lavfi.blackframe.pblack=99", LineKind.BLACK_PERCENT),
        ("[Parsed_blackframe_1 @ 0x1] frame:3 pblack:99 pts:9", LineKind.BLACK_PERCENT),
        ("[Parsed_showinfo_2 @ 0x1] n: 3 pts: 9 pts_time:0.3", LineKind.FRAME_BOUNDARY),
        ("[Parsed_astats_0 @ 0x1] pts_time:0.3 RMS level dB: -40", LineKind.LOUDNESS),
        ("[Parsed_metadata_0 @ 0x1] frame:0 pts:0 pts_time:0", LineKind.OTHER),
        ("silence_start: 1.0", LineKind.OTHER),
        ("", LineKind.OTHER),
    ])
    def test_kinds(self, line, kind):
        assert classify_line(line) is kind


# ---------------------------------------------------------------------------
# parse_silence
# ---------------------------------------------------------------------------

class TestParseSilence:
    def test_fixture(self, silence_log):
        assert parse_silence(silence_log, min_duration=0.005) == [
            SilenceInterval(start=0.0, end=0.4),
            SilenceInterval(start=9.95, end=10.6),
            SilenceInterval(start=19.9, end=20.3),
        ]

    def test_unterminated_start_is_dropped(self):
        text = "[silencedetect @ 0x1] silence_start: 8.0\n"
        assert parse_silence(text, min_duration=0.0) == []

    def test_end_without_start_is_ignored(self):
        text = (
            "[silencedetect @ 0x1] silence_end: 2.0 | silence_duration: 1.0\n"
            "[silencedetect @ 0x1] silence_start: 3.0\n"
            "[silencedetect @ 0x1] silence_end: 4.0 | silence_duration: 1.0\n"
        )
        assert parse_silence(text, min_duration=0.0) == [SilenceInterval(start=3.0, end=4.0)]

    def test_min_duration_filter(self):
        text = (
            "[silencedetect @ 0x1] silence_start: 1.0\n"
            "[silencedetect @ 0x1] silence_end: 1.5 | silence_duration: 0.5\n"
            "[silencedetect @ 0x1] silence_start: 5.0\n"
            "[silencedetect @ 0x1] silence_end: 7.0 | silence_duration: 2.0\n"
        )
        assert parse_silence(text, min_duration=1.0) == [SilenceInterval(start=5.0, end=7.0)]

    def test_offset_is_added(self):
        text = (
            "[silencedetect @ 0x1] silence_start: 1.0\n"
            "[silencedetect @ 0x1] silence_end: 2.0 | silence_duration: 1.0\n"
        )
        assert parse_silence(text, min_duration=0.0, offset=60.0) == [
            SilenceInterval(start=61.0, end=62.0)
        ]

    def test_negative_start(self):
        text = (
            "[silencedetect @ 0x1] silence_start: -0.0213\n"
            "[silencedetect @ 0x1] silence_end: 0.5 | silence_duration: 0.52\n"
        )
        result = parse_silence(text, min_duration=0.0)
        assert result == [SilenceInterval(start=-0.0213, end=0.5)]

    def test_untagged_lines_are_ignored(self):
        text = "silence_start: 1.0\nsilence_end: 2.0\n"
        assert parse_silence(text, min_duration=0.0) == []

    def test_malformed_value_is_skipped(self):
        text = (
            "[silencedetect @ 0x1] silence_start: abc\n"
            "[silencedetect @ 0x1] silence_start: 3.0\n"
            "[silencedetect @ 0x1] silence_end: 4.0 | silence_duration: 1.0\n"
        )
        result = parse_silence_result(text, min_duration=0.0)
        assert result.records == [SilenceInterval(start=3.0, end=4.0)]
        assert len(result.errors) == 1
        assert result.errors[0].line_no == 1
        assert result.errors[0].kind is LineKind.SILENCE_START

    def test_truncated_end_keeps_pending_start(self):
        text = (
            "[silencedetect @ 0x1] silence_start: 3.0\n"
            "[silencedetect @ 0x1] silence_end: \n"
            "[silencedetect @ 0x1] silence_end: 4.0 | silence_duration: 1.0\n"
        )
        assert parse_silence(text, min_duration=0.0) == [SilenceInterval(start=3.0, end=4.0)]

    def test_empty(self):
        assert parse_silence("", min_duration=0.0) == []


# ---------------------------------------------------------------------------
# parse_black
# ---------------------------------------------------------------------------

class TestParseBlack:
    def test_fixture(self, black_log):
        assert parse_black(black_log, min_duration=0.005) == [
            BlackInterval(start=0.0, end=0.5),
            BlackInterval(start=10.0, end=10.5),
        ]

    def test_strict_threshold(self):
        text = (
            "[blackdetect @ 0x1] black_start:1 black_end:1.2 black_duration:0.2\n"
            "[blackdetect @ 0x1] black_start:5 black_end:6 black_duration:1\n"
        )
        assert parse_black(text, min_duration=0.5) == [BlackInterval(start=5.0, end=6.0)]

    def test_bounds_on_separate_lines_are_ignored(self):
        text = "[blackdetect @ 0x1] black_start:1\n[blackdetect @ 0x1] black_end:2\n"
        assert parse_black(text, min_duration=0.0) == []

    def test_offset(self):
        text = "[blackdetect @ 0x1] black_start:1.5 black_end:2.5 black_duration:1\n"
        assert parse_black(text, min_duration=0.0, offset=100.0) == [
            BlackInterval(start=101.5, end=102.5)
        ]

    def test_malformed_line_does_not_abort(self):
        text = (
            "[blackdetect @ 0x1] black_start:x.y black_end:2 black_duration:1\n"
            "[blackdetect @ 0x1] black_start:3 black_end:\n"
            "[blackdetect @ 0x1] black_start:5 black_end:6 black_duration:1\n"
        )
        result = parse_black_result(text, min_duration=0.0)
        assert result.records == [BlackInterval(start=5.0, end=6.0)]
        assert [e.line_no for e in result.errors] == [1, 2]


# ---------------------------------------------------------------------------
# parse_frames
# ---------------------------------------------------------------------------

class TestParseFrames:
    def test_fixture_frames(self, frames_log):
        frames = parse_frames(frames_log)
        assert [f.timestamp for f in frames] == [9.9, 10.0, 10.2, 10.4, 10.6, 19.9, 20.0, 20.1]
        assert [f.black_percentage for f in frames] == [12, 100, 100, 98, 20, 10, 97, 15]

    def test_scene_scores(self, frames_log):
        frames = parse_frames(frames_log)
        assert frames[0].scene_score == pytest.approx(0.01)
        assert frames[0].is_scene_change is False
        assert frames[1].scene_score == pytest.approx(0.45)
        assert frames[1].is_scene_change is True
        assert frames[4].is_scene_change is True
        assert frames[2].scene_score == 0.0

    def test_scene_score_at_cutoff_is_not_a_change(self):
        text = (
            "[Parsed_metadata_0 @ 0x1] lavfi.scene_score=0.300000\n"
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
        )
        [frame] = parse_frames(text)
        assert frame.scene_score == pytest.approx(0.3)
        assert frame.is_scene_change is False

    def test_loudness_backfill(self, frames_log):
        frames = parse_frames(frames_log)
        assert frames[0].loudness_db == -22.5
        assert frames[2].loudness_db == -91.0
        assert frames[1].loudness_db == 0.0

    def test_truncated_boundary_is_reported(self, frames_log):
        result = parse_frames_result(frames_log)
        assert len(result.records) == 8
        assert len(result.errors) == 1
        assert result.errors[0].kind is LineKind.FRAME_BOUNDARY

    def test_out_of_order_frames_are_sorted(self):
        text = (
            "[Parsed_blackframe_1 @ 0x1] frame:1 pblack:50 pts:2\n"
            "[Parsed_showinfo_2 @ 0x1] n: 1 pts: 2 pts_time:2.0\n"
            "[Parsed_blackframe_1 @ 0x1] frame:0 pblack:90 pts:1\n"
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
        )
        frames = parse_frames(text)
        assert [(f.timestamp, f.black_percentage) for f in frames] == [(1.0, 90), (2.0, 50)]

    def test_loudness_before_frame_is_dropped(self):
        text = (
            "[Parsed_astats_0 @ 0x1] pts_time:1.0 RMS level dB: -30\n"
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
        )
        frames = parse_frames(text)
        assert frames[0].loudness_db == 0.0

    def test_loudness_outside_tolerance(self):
        text = (
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
            "[Parsed_astats_0 @ 0x1] pts_time:1.05 RMS level dB: -30\n"
        )
        assert parse_frames(text)[0].loudness_db == 0.0

    def test_loudness_first_emitted_match_wins(self):
        text = (
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.01\n"
            "[Parsed_showinfo_2 @ 0x1] n: 1 pts: 1 pts_time:1.00\n"
            "[Parsed_astats_0 @ 0x1] pts_time:1.0 RMS level dB: -30\n"
        )
        frames = parse_frames(text)
        assert frames[0].timestamp == 1.0
        assert frames[0].loudness_db == 0.0
        assert frames[1].loudness_db == -30.0

    def test_infinite_loudness_is_accepted(self):
        text = (
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
            "[Parsed_astats_0 @ 0x1] pts_time:1.0 RMS level dB: -inf\n"
        )
        assert parse_frames(text)[0].loudness_db == float("-inf")

    def test_offset(self):
        text = "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.5\n"
        assert parse_frames(text, offset=10.0)[0].timestamp == 11.5

    def test_pblack_metadata_is_rounded(self):
        text = (
            "[Parsed_metadata_0 @ 0x1] lavfi.blackframe.pblack=94.6\n"
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
        )
        assert parse_frames(text)[0].black_percentage == 95

    def test_state_resets_between_frames(self):
        text = (
            "[Parsed_metadata_0 @ 0x1] lavfi.scene_score=0.9\n"
            "[Parsed_blackframe_1 @ 0x1] frame:0 pblack:99 pts:1\n"
            "[Parsed_showinfo_2 @ 0x1] n: 0 pts: 1 pts_time:1.0\n"
            "[Parsed_showinfo_2 @ 0x1] n: 1 pts: 2 pts_time:1.1\n"
        )
        second = parse_frames(text)[1]
        assert second.black_percentage == 0
        assert second.is_scene_change is False

    def test_empty(self):
        assert parse_frames("") == []


class TestParseSceneTimes:
    def test_sorted_times_with_offset(self):
        text = (
            "[Parsed_showinfo_1 @ 0x1] n: 1 pts: 900 pts_time:30.03 pos: 12\n"
            "[Parsed_showinfo_1 @ 0x1] n: 0 pts: 300 pts_time:10.01 pos: 11\n"
            "[Parsed_showinfo_1 @ 0x1] n: 2 pts: 0 pts_time:\n"
        )
        assert parse_scene_times(text, offset=5.0) == pytest.approx([15.01, 35.03])
