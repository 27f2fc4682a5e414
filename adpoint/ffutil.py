"""FFmpeg/ffprobe subprocess helpers.

Each analysis pass runs ffmpeg against a null muxer and returns the captured
stderr, which the parsers in :mod:`adpoint.parsing` turn into records.
"""

import json
import logging
import shutil
import subprocess
from pathlib import Path

from adpoint.manifest import BlackConfig, DetectionConfig, FrameConfig, SilenceConfig
from adpoint.models import AnalysisReports, ProbeResult

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class ProbeError(ValueError):
    """Raised when ffprobe output lacks what detection needs."""
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(result.stdout)

    video_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "video"), None
    )
    audio_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "audio"), None
    )

    if video_stream is None:
        raise ProbeError(f"No video stream found in {input_path}")

    try:
        duration = float(data["format"]["duration"])
    except (KeyError, ValueError):
        raise ProbeError(f"Could not read duration of {input_path}") from None

    # Parse fps from r_frame_rate (e.g. "30000/1001")
    num, den = video_stream.get("r_frame_rate", "0/1").split("/")
    fps = int(num) / int(den) if int(den) else 0.0

    return ProbeResult(
        duration=duration,
        width=int(video_stream.get("width", 0)),
        height=int(video_stream.get("height", 0)),
        fps=fps,
        has_audio=audio_stream is not None,
        codec_video=video_stream.get("codec_name", ""),
        codec_audio=audio_stream.get("codec_name") if audio_stream else None,
    )


def _window_args(start: float | None, end: float | None) -> list[str]:
    if start is None or end is None:
        return []
    return ["-ss", f"{start:.6f}", "-t", f"{end - start:.6f}"]


def _run_pass(name: str, input_path: Path, filter_args: list[str], start, end) -> str:
    cmd = [
        "ffmpeg", "-hide_banner", "-nostats",
        *_window_args(start, end),
        "-i", str(input_path),
        *filter_args,
        "-f", "null", "-",
    ]
    logger.debug("Running %s pass: %s", name, " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)

    if result.returncode != 0 and not result.stderr:
        raise RuntimeError(
            f"ffmpeg {name} failed (rc={result.returncode}) with no output"
        )
    if result.returncode != 0:
        logger.warning("ffmpeg %s exited with rc=%d; parsing partial output", name, result.returncode)
    return result.stderr


def silence_report(
    input_path: Path,
    config: SilenceConfig,
    start: float | None = None,
    end: float | None = None,
) -> str:
    """Run silencedetect and return its stderr report."""
    af = f"silencedetect=noise={config.threshold_db:g}dB:d={config.detect_duration:g}"
    return _run_pass("silencedetect", input_path, ["-vn", "-af", af], start, end)


def black_report(
    input_path: Path,
    config: BlackConfig,
    start: float | None = None,
    end: float | None = None,
) -> str:
    """Run blackdetect and return its stderr report."""
    vf = f"blackdetect=d={config.detect_duration:g}"
    if config.picture_threshold is not None:
        vf += f":pic_th={config.picture_threshold:g}"
    vf += f":pix_th={config.pixel_threshold:g}"
    return _run_pass("blackdetect", input_path, ["-an", "-vf", vf], start, end)


def frame_report(
    input_path: Path,
    config: FrameConfig,
    start: float | None = None,
    end: float | None = None,
    has_audio: bool = True,
) -> str:
    """Run the per-frame metadata pass (scene score, pblack, showinfo, astats)."""
    vf = f"metadata=print,blackframe=amount=0:threshold={config.blackframe_threshold},showinfo"
    args = ["-vf", vf]
    if has_audio:
        args += ["-af", "astats=metadata=1:reset=1"]
    else:
        args.append("-an")
    return _run_pass("frame metadata", input_path, args, start, end)


def scene_report(
    input_path: Path,
    threshold: float,
    start: float | None = None,
    end: float | None = None,
) -> str:
    """Run a scene-change select pass; showinfo prints each kept frame."""
    vf = f"select=gt(scene\\,{threshold:g}),showinfo"
    return _run_pass("scene select", input_path, ["-an", "-vf", vf], start, end)


def collect_reports(
    input_path: Path,
    config: DetectionConfig,
    start: float | None = None,
    end: float | None = None,
    has_audio: bool = True,
) -> AnalysisReports:
    """Run every analysis pass the config asks for.

    Without an audio stream there is nothing to silencedetect, so the silence
    report is left empty and detection yields no candidates.
    """
    silence = ""
    if has_audio:
        silence = silence_report(input_path, config.silence, start, end)
    else:
        logger.warning("%s has no audio stream; skipping silence detection", input_path)
    frames = ""
    if config.frames.enabled:
        frames = frame_report(input_path, config.frames, start, end, has_audio=has_audio)
    return AnalysisReports(
        silence=silence,
        black=black_report(input_path, config.black, start, end),
        frames=frames,
        offset=start if start is not None and end is not None else 0.0,
    )
