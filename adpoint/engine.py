"""Orchestrator: runs the detection pipeline defined by a Manifest."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from adpoint import ffutil
from adpoint.analyzers.fade import analyze_fade_to_black
from adpoint.analyzers.hard_cut import analyze_hard_cuts
from adpoint.manifest import Manifest
from adpoint.models import Period

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    input_path: Path
    duration: float = 0.0
    mode: str = "fade"
    profile: str = "fade"
    periods: list[Period] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.periods)


def process(
    manifest: Manifest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the full detection pipeline.

    Args:
        manifest: Validated detection manifest.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    def _sub_progress(stage: str, base: float, span: float):
        """Return a callback that maps an analyzer's [0,1] to [base, base+span]."""
        def cb(frac: float) -> None:
            _progress(stage, base + frac * span)
        return cb

    ffutil.check_ffmpeg()
    detection = manifest.detection

    _progress("Probing video metadata", 0.0)
    probe_result = ffutil.probe(manifest.input)
    _progress("Probing video metadata", 0.05)

    if detection.mode == "hard_cut":
        _progress("Scanning for silent scene cuts", 0.1)
        periods = analyze_hard_cuts(
            manifest.input, detection, probe_result,
            start=manifest.start, end=manifest.end,
        )
    else:
        periods = analyze_fade_to_black(
            manifest.input, detection, probe_result,
            start=manifest.start, end=manifest.end,
            on_progress=_sub_progress("Scanning for fades to black", 0.1, 0.85),
        )

    logger.info("%s: %d ad insertion periods", manifest.input, len(periods))
    _progress("Done", 1.0)
    return EngineResult(
        input_path=manifest.input,
        duration=probe_result.duration,
        mode=detection.mode,
        profile=detection.profile,
        periods=periods,
    )
