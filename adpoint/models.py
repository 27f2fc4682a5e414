"""Shared data types used across AdPoint."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Interval:
    """A start/end time pair in seconds."""

    start: float
    end: float

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Interval end {self.end} precedes start {self.start}")

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def midpoint(self) -> float:
        return self.start + self.duration / 2.0


@dataclass(frozen=True)
class SilenceInterval(Interval):
    """Audio below the loudness threshold."""

    source = "silence"


@dataclass(frozen=True)
class BlackInterval(Interval):
    """Video below the black-pixel threshold."""

    source = "black"


@dataclass(frozen=True)
class CandidatePeriod(Interval):
    """A matcher result, tagged with how it was found.

    ``kind`` is one of "overlap", "close" or "chapter".
    """

    kind: str = "overlap"


@dataclass(frozen=True)
class Period(Interval):
    """A final ad insertion period."""


@dataclass
class FrameSample:
    """Per-frame metadata from the combined frame analysis pass."""

    timestamp: float = 0.0
    black_percentage: int = 0
    is_scene_change: bool = False
    scene_score: float = 0.0
    loudness_db: float = 0.0


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    width: int
    height: int
    fps: float
    has_audio: bool
    codec_video: str
    codec_audio: str | None = None


@dataclass
class AnalysisReports:
    """Raw text reports from the analysis backend.

    ``offset`` is the absolute time (seconds) the reports' relative
    timestamps start from.
    """

    silence: str = ""
    black: str = ""
    frames: str = ""
    offset: float = 0.0
