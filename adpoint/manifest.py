"""JSON manifest schema: the contract between CLI/API and engine."""

import json
import math
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path


@dataclass
class SilenceConfig:
    """ffmpeg silencedetect parameters and the parse-time duration floor."""

    threshold_db: float = -30.0
    detect_duration: float = 0.05
    min_duration: float = 0.005


@dataclass
class BlackConfig:
    """ffmpeg blackdetect parameters and the parse-time duration floor."""

    detect_duration: float = 0.03
    picture_threshold: float | None = 0.9
    pixel_threshold: float = 0.1
    min_duration: float = 0.005


@dataclass
class FrameConfig:
    """Per-frame metadata pass and black-period synthesis."""

    enabled: bool = True
    blackframe_threshold: int = 32
    synth_black_pct: int = 95
    synth_min_duration: float = 0.01
    frame_duration: float = 1.0 / 29.97


@dataclass
class MatchConfig:
    """Silence/black correlation parameters.

    ``close_policy`` chooses the span of a close (non-touching) match:
    "union" covers both intervals, "black" keeps the black interval's bounds.
    """

    min_duration: float = 0.01
    tolerance: float = 0.1
    close_policy: str = "union"
    confirm_black_pct: int = 95
    chapter_marks: list[float] = field(default_factory=list)
    chapter_proximity: float = 0.5
    chapter_min_duration: float = 0.01
    chapter_search_padding: float = 0.1


@dataclass
class MergeConfig:
    """Candidate merging and edge exclusion."""

    gap: float = 0.0
    edge_margin: float = 1.0


@dataclass
class HardCutConfig:
    """Scene cuts that land inside a silence (no fade to black)."""

    threshold_db: float = -40.0
    min_duration: float = 0.01
    scene_threshold: float = 0.2


MODES = ("fade", "hard_cut")


@dataclass
class DetectionConfig:
    """Everything the detection pipeline needs apart from the input."""

    profile: str = "fade"
    mode: str = "fade"
    silence: SilenceConfig = field(default_factory=SilenceConfig)
    black: BlackConfig = field(default_factory=BlackConfig)
    frames: FrameConfig = field(default_factory=FrameConfig)
    match: MatchConfig = field(default_factory=MatchConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    hard_cut: HardCutConfig = field(default_factory=HardCutConfig)


PROFILES: dict[str, DetectionConfig] = {
    "fade": DetectionConfig(profile="fade"),
    "basic": DetectionConfig(
        profile="basic",
        silence=SilenceConfig(threshold_db=-35.0, detect_duration=0.03),
        black=BlackConfig(detect_duration=0.1, picture_threshold=0.95, pixel_threshold=0.10),
        frames=FrameConfig(enabled=False),
        match=MatchConfig(min_duration=0.03),
    ),
    "strict": DetectionConfig(
        profile="strict",
        silence=SilenceConfig(detect_duration=1.0, min_duration=1.0),
        black=BlackConfig(detect_duration=0.5, picture_threshold=None, min_duration=0.5),
        frames=FrameConfig(enabled=False, synth_black_pct=90, synth_min_duration=0.05),
        match=MatchConfig(min_duration=1.0, confirm_black_pct=90),
    ),
    "loose": DetectionConfig(
        profile="loose",
        black=BlackConfig(min_duration=0.01),
        frames=FrameConfig(synth_black_pct=90, synth_min_duration=0.05),
        match=MatchConfig(confirm_black_pct=90),
        merge=MergeConfig(gap=1.0),
    ),
}


def get_profile(name: str) -> DetectionConfig:
    """Return a fresh copy of the named profile."""
    if name not in PROFILES:
        raise ValueError(f"Unknown profile {name!r}; choose from {', '.join(PROFILES)}")
    base = PROFILES[name]
    return DetectionConfig(
        profile=base.profile,
        mode=base.mode,
        silence=replace(base.silence),
        black=replace(base.black),
        frames=replace(base.frames),
        match=replace(base.match, chapter_marks=list(base.match.chapter_marks)),
        merge=replace(base.merge),
        hard_cut=replace(base.hard_cut),
    )


@dataclass
class Manifest:
    """Top-level detection manifest."""

    input: Path
    version: str = "1"
    start: float | None = None
    end: float | None = None
    detection: DetectionConfig = field(default_factory=DetectionConfig)


def build_detection_config(data: dict) -> DetectionConfig:
    """Apply the overrides in ``data`` on top of its named profile."""
    config = get_profile(data.get("profile", "fade"))
    if "mode" in data:
        if data["mode"] not in MODES:
            raise ValueError(f"Unknown mode {data['mode']!r}; choose from {', '.join(MODES)}")
        config.mode = data["mode"]
    if "silence" in data:
        config.silence = replace(config.silence, **data["silence"])
    if "black" in data:
        config.black = replace(config.black, **data["black"])
    if "frames" in data:
        config.frames = replace(config.frames, **data["frames"])
    if "match" in data:
        config.match = replace(config.match, **data["match"])
    if "merge" in data:
        config.merge = replace(config.merge, **data["merge"])
    if "hard_cut" in data:
        config.hard_cut = replace(config.hard_cut, **data["hard_cut"])
    if config.match.close_policy not in ("union", "black"):
        raise ValueError(f"Unknown close_policy {config.match.close_policy!r}")
    return config


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data:
        raise ValueError("Manifest must contain an 'input' field")

    start, end = validate_window(data.get("start"), data.get("end"))

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        start=start,
        end=end,
        detection=build_detection_config(data.get("detection", {})),
    )


def validate_window(start, end) -> tuple[float | None, float | None]:
    """Check an analysis window and return it as floats.

    Both bounds are given or neither is; when given they must be finite
    numbers with ``end`` after ``start``. Raises ValueError otherwise.
    """
    if start is None and end is None:
        return None, None
    if start is None or end is None:
        raise ValueError("'start' and 'end' must be given together")
    for value in (start, end):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("'start' and 'end' must be numbers")
    start, end = float(start), float(end)
    if not (math.isfinite(start) and math.isfinite(end)):
        raise ValueError("'start' and 'end' must be finite")
    if end <= start:
        raise ValueError("'end' must be after 'start'")
    return start, end


def dump_config(config: DetectionConfig) -> dict:
    """Plain-dict view of a config, for JSON output."""
    return asdict(config)
