"""Parsers for ffmpeg diagnostic output (silencedetect, blackdetect, frame metadata).

All parsers are pure functions over the captured stderr text. A line whose
numeric field is missing or malformed is recorded as a :class:`LineError` and
skipped; it never aborts the parse. Timestamps are made absolute by adding
``offset``, the start of the analysed window.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum

from adpoint.frames import FrameIndex
from adpoint.models import BlackInterval, FrameSample, SilenceInterval

logger = logging.getLogger(__name__)

SCENE_CHANGE_SCORE = 0.3
LOUDNESS_MATCH_TOLERANCE = 0.02


class LineKind(Enum):
    SILENCE_START = "silence_start"
    SILENCE_END = "silence_end"
    BLACK_REGION = "black_region"
    SCENE_SCORE = "scene_score"
    BLACK_PERCENT = "black_percent"
    FRAME_BOUNDARY = "frame_boundary"
    LOUDNESS = "loudness"
    OTHER = "other"


@dataclass(frozen=True)
class LineError:
    """A report line that looked relevant but could not be read."""

    line_no: int
    kind: LineKind
    text: str
    reason: str


@dataclass
class ParseResult:
    records: list = field(default_factory=list)
    errors: list[LineError] = field(default_factory=list)


class _FieldError(ValueError):
    pass


_SILENCE_TAG = "[silencedetect @"
_SILENCE_START_RE = re.compile(r"silence_start:\s*(\S*)")
_SILENCE_END_RE = re.compile(r"silence_end:\s*(\S*)")
_BLACK_RE = re.compile(r"black_start:\s*(\S*)\s+black_end:\s*(\S*)")
_SCENE_RE = re.compile(r"lavfi\.scene_score=(\S*)")
_PBLACK_META_RE = re.compile(r"lavfi\.blackframe\.pblack=(\S*)")
_PBLACK_RE = re.compile(r"\spblack:\s*(\S*)")
_PTS_TIME_RE = re.compile(r"pts_time:\s*([-\d.]*)")
_RMS_RE = re.compile(r"RMS level dB:\s*(\S*)")


def classify_line(line: str) -> LineKind:
    """Identify which report record, if any, a line carries."""
    if _SILENCE_TAG in line:
        if "silence_start:" in line:
            return LineKind.SILENCE_START
        if "silence_end:" in line:
            return LineKind.SILENCE_END
    if "black_start:" in line and " black_end:" in line:
        return LineKind.BLACK_REGION
    if "lavfi.scene_score=" in line:
        return LineKind.SCENE_SCORE
    if "lavfi.blackframe.pblack=" in line:
        return LineKind.BLACK_PERCENT
    if "[Parsed_blackframe" in line and " pblack:" in line:
        return LineKind.BLACK_PERCENT
    if "[Parsed_showinfo" in line and "pts_time:" in line:
        return LineKind.FRAME_BOUNDARY
    if "[Parsed_astats" in line and "RMS level dB:" in line and "pts_time:" in line:
        return LineKind.LOUDNESS
    return LineKind.OTHER


def _number(pattern: re.Pattern, line: str, allow_infinite: bool = False) -> float:
    m = pattern.search(line)
    if m is None or not m.group(1):
        raise _FieldError(f"missing value for {pattern.pattern!r}")
    raw = m.group(1)
    try:
        value = float(raw)
    except ValueError:
        raise _FieldError(f"not a number: {raw!r}") from None
    if math.isnan(value) or (math.isinf(value) and not allow_infinite):
        raise _FieldError(f"not a finite number: {raw!r}")
    return value


def _lines(text: str):
    for line_no, line in enumerate(text.splitlines(), 1):
        yield line_no, line, classify_line(line)


def _record_error(result: ParseResult, line_no: int, kind: LineKind, line: str, exc: Exception) -> None:
    err = LineError(line_no=line_no, kind=kind, text=line.strip(), reason=str(exc))
    result.errors.append(err)
    logger.debug("Skipping line %d (%s): %s", line_no, kind.value, err.reason)


# ---------------------------------------------------------------------------
# silencedetect
# ---------------------------------------------------------------------------

def parse_silence_result(text: str, min_duration: float, offset: float = 0.0) -> ParseResult:
    result = ParseResult()
    pending: float | None = None

    for line_no, line, kind in _lines(text):
        try:
            if kind is LineKind.SILENCE_START:
                pending = offset + _number(_SILENCE_START_RE, line)
            elif kind is LineKind.SILENCE_END and pending is not None:
                end = offset + _number(_SILENCE_END_RE, line)
                if end - pending >= min_duration:
                    result.records.append(SilenceInterval(start=pending, end=end))
                pending = None
        except ValueError as exc:
            _record_error(result, line_no, kind, line, exc)

    if pending is not None:
        logger.debug("Dropping unterminated silence starting at %.3f", pending)
    return result


def parse_silence(text: str, min_duration: float, offset: float = 0.0) -> list[SilenceInterval]:
    """Parse silencedetect output into silence intervals.

    A ``silence_end`` closes the most recent ``silence_start``; ends without
    a pending start are ignored, as is a start still open at end of input.
    Intervals shorter than ``min_duration`` are dropped.
    """
    return parse_silence_result(text, min_duration, offset).records


# ---------------------------------------------------------------------------
# blackdetect
# ---------------------------------------------------------------------------

def parse_black_result(text: str, min_duration: float, offset: float = 0.0) -> ParseResult:
    result = ParseResult()
    for line_no, line, kind in _lines(text):
        if kind is not LineKind.BLACK_REGION:
            continue
        m = _BLACK_RE.search(line)
        try:
            if m is None:
                raise _FieldError("truncated black region")
            start = offset + float(m.group(1))
            end = offset + float(m.group(2))
            if not (math.isfinite(start) and math.isfinite(end)):
                raise _FieldError("not a finite number")
            if end - start >= min_duration:
                result.records.append(BlackInterval(start=start, end=end))
        except ValueError as exc:
            _record_error(result, line_no, kind, line, exc)
    return result


def parse_black(text: str, min_duration: float, offset: float = 0.0) -> list[BlackInterval]:
    """Parse blackdetect output; both bounds must be on the same line."""
    return parse_black_result(text, min_duration, offset).records


# ---------------------------------------------------------------------------
# metadata=print,blackframe,showinfo + astats
# ---------------------------------------------------------------------------

def parse_frames_result(text: str, offset: float = 0.0) -> ParseResult:
    result = ParseResult()
    index = FrameIndex()
    current = FrameSample()

    for line_no, line, kind in _lines(text):
        try:
            if kind is LineKind.SCENE_SCORE:
                score = _number(_SCENE_RE, line)
                current.scene_score = score
                current.is_scene_change = score > SCENE_CHANGE_SCORE
            elif kind is LineKind.BLACK_PERCENT:
                pattern = _PBLACK_META_RE if "lavfi." in line else _PBLACK_RE
                current.black_percentage = int(round(_number(pattern, line)))
            elif kind is LineKind.FRAME_BOUNDARY:
                current.timestamp = offset + _number(_PTS_TIME_RE, line)
                index.add(current)
                current = FrameSample()
            elif kind is LineKind.LOUDNESS:
                ts = offset + _number(_PTS_TIME_RE, line)
                loudness = _number(_RMS_RE, line, allow_infinite=True)
                match = index.nearest(ts, LOUDNESS_MATCH_TOLERANCE)
                if match is not None:
                    match.loudness_db = loudness
        except ValueError as exc:
            _record_error(result, line_no, kind, line, exc)

    result.records = index.samples
    return result


def parse_frames(text: str, offset: float = 0.0) -> list[FrameSample]:
    """Parse the combined per-frame report into samples sorted by timestamp.

    Scene-score and black-percentage lines accumulate onto the frame in
    progress; a showinfo line stamps it with its presentation time and starts
    the next one. astats loudness lines are matched to an already-emitted
    frame within 0.02 s.
    """
    return parse_frames_result(text, offset).records


def parse_scene_times(text: str, offset: float = 0.0) -> list[float]:
    """Presentation times of the frames kept by a ``select=gt(scene,N),showinfo`` pass."""
    times: list[float] = []
    for line_no, line, kind in _lines(text):
        if kind is not LineKind.FRAME_BOUNDARY:
            continue
        try:
            times.append(offset + _number(_PTS_TIME_RE, line))
        except _FieldError as exc:
            logger.debug("Skipping line %d (%s): %s", line_no, kind.value, exc)
    return sorted(times)
