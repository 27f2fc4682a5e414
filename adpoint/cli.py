"""Thin CLI entry point: builds a Manifest and calls the engine."""

import argparse
import json
import logging
import subprocess
import sys
from pathlib import Path

from adpoint.analyzers.fade import detect_fade_periods
from adpoint.batch import run_batch, scan_videos
from adpoint.editors.report import ReportOptions, render_json, render_plain, render_text
from adpoint.engine import process
from adpoint.ffutil import FFmpegNotFoundError, ProbeError
from adpoint.manifest import (
    MODES,
    PROFILES,
    DetectionConfig,
    Manifest,
    get_profile,
    load_manifest,
    validate_window,
)
from adpoint.models import AnalysisReports


def _add_detection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--profile", choices=list(PROFILES), default="fade", help="Detection parameter set")
    p.add_argument("--merge-gap", type=float, help="Merge candidates separated by up to this many seconds")
    p.add_argument("--edge-margin", type=float, help="Ignore periods this close to the start/end")
    p.add_argument("--close-policy", choices=["union", "black"], help="Span used for near-miss matches")
    p.add_argument(
        "--chapter", type=float, action="append", default=[], metavar="SECONDS",
        help="Known chapter mark used as a fallback anchor (repeatable)",
    )


def _add_hard_cut_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--silence-db", type=float, help="hard_cut: silence threshold in dB")
    p.add_argument("--silence-dur", type=float, help="hard_cut: minimum silence length (seconds)")
    p.add_argument("--scene-thresh", type=float, help="hard_cut: scene-change score threshold")


def _add_output_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--format", choices=["text", "plain", "json"], default="text", help="Report format")
    p.add_argument("--no-format", action="store_true", help="Same as --format plain")
    for name in ("decimal", "mmss", "start", "midpoint", "end"):
        p.add_argument(f"--hide-{name}", action="store_true", help=f"Omit {name} values")


def _detection_from_args(args: argparse.Namespace) -> DetectionConfig:
    config = get_profile(args.profile)
    if getattr(args, "mode", None):
        config.mode = args.mode
    if args.merge_gap is not None:
        config.merge.gap = args.merge_gap
    if args.edge_margin is not None:
        config.merge.edge_margin = args.edge_margin
    if args.close_policy:
        config.match.close_policy = args.close_policy
    if args.chapter:
        config.match.chapter_marks = sorted(args.chapter)
    if getattr(args, "silence_db", None) is not None:
        config.hard_cut.threshold_db = args.silence_db
    if getattr(args, "silence_dur", None) is not None:
        config.hard_cut.min_duration = args.silence_dur
    if getattr(args, "scene_thresh", None) is not None:
        config.hard_cut.scene_threshold = args.scene_thresh
    return config


def _report_options(args: argparse.Namespace) -> ReportOptions:
    return ReportOptions(
        show_decimal=not args.hide_decimal,
        show_mmss=not args.hide_mmss,
        show_start=not args.hide_start,
        show_midpoint=not args.hide_midpoint,
        show_end=not args.hide_end,
    )


def _render(args, periods, duration, points=False) -> str:
    fmt = "plain" if args.no_format else args.format
    opts = _report_options(args)
    if fmt == "json":
        return render_json(periods, duration) + "\n"
    if fmt == "plain":
        return render_plain(periods, opts, points=points)
    return render_text(periods, duration, opts, points=points)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="adpoint",
        description="AdPoint: find fade-to-black ad insertion points in video.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    sub = parser.add_subparsers(dest="command")

    det = sub.add_parser("detect", help="Detect ad insertion points in a video file")
    det.add_argument("video", nargs="?", type=Path, help="Input video file")
    det.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    det.add_argument("--start", type=float, help="Analyse from this time (seconds)")
    det.add_argument("--end", type=float, help="Analyse up to this time (seconds)")
    det.add_argument("--mode", choices=list(MODES), help="fade (default) or hard_cut")
    _add_detection_args(det)
    _add_hard_cut_args(det)
    _add_output_args(det)

    ana = sub.add_parser("analyze", help="Detect from saved ffmpeg reports (no ffmpeg run)")
    ana.add_argument("--silence-log", type=Path, required=True, help="silencedetect stderr")
    ana.add_argument("--black-log", type=Path, help="blackdetect stderr")
    ana.add_argument("--frames-log", type=Path, help="metadata/blackframe/showinfo/astats stderr")
    ana.add_argument("--duration", type=float, required=True, help="Media duration (seconds)")
    ana.add_argument("--offset", type=float, default=0.0, help="Absolute time the reports start at")
    _add_detection_args(ana)
    _add_output_args(ana)

    bat = sub.add_parser("batch", help="Detect over every video in a directory")
    bat.add_argument("directory", type=Path, help="Directory to scan")
    bat.add_argument("--workers", type=int, help="Worker threads (default: CPU count)")
    bat.add_argument("--mode", choices=list(MODES), help="fade (default) or hard_cut")
    _add_detection_args(bat)
    _add_hard_cut_args(bat)

    serve = sub.add_parser("serve", help="Launch the web UI")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from adpoint.web import create_app
        app = create_app()
        print(f"AdPoint web UI: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    if args.command == "analyze":
        reports = AnalysisReports(
            silence=args.silence_log.read_text(errors="replace"),
            black=args.black_log.read_text(errors="replace") if args.black_log else "",
            frames=args.frames_log.read_text(errors="replace") if args.frames_log else "",
            offset=args.offset,
        )
        periods = detect_fade_periods(reports, _detection_from_args(args), args.duration)
        sys.stdout.write(_render(args, periods, args.duration))
        return

    if args.command == "batch":
        items = run_batch(scan_videos(args.directory), _detection_from_args(args), max_workers=args.workers)
        failed = 0
        for item in items:
            if not item.ok:
                failed += 1
                print(f"{item.input_path}: ERROR {item.error}")
                continue
            values = " ".join(f"{p.midpoint:.3f}" for p in item.result.periods) or "-"
            print(f"{item.input_path}: {values}")
        sys.exit(1 if failed else 0)

    if args.manifest:
        try:
            m = load_manifest(args.manifest)
        except json.JSONDecodeError as e:
            print(f"Error: {args.manifest} is not valid JSON: {e}", file=sys.stderr)
            sys.exit(1)
        except (OSError, TypeError, ValueError) as e:
            print(f"Error: invalid manifest {args.manifest}: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.video:
        try:
            start, end = validate_window(args.start, args.end)
        except ValueError as e:
            print(f"Error: --start/--end: {e}", file=sys.stderr)
            sys.exit(1)
        m = Manifest(
            input=args.video,
            start=start,
            end=end,
            detection=_detection_from_args(args),
        )
    else:
        print("Error: provide either a VIDEO argument or --manifest.", file=sys.stderr)
        sys.exit(1)

    try:
        result = process(m)
    except (FFmpegNotFoundError, ProbeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except subprocess.CalledProcessError as e:
        print(f"Error: ffprobe failed on {m.input} (rc={e.returncode})", file=sys.stderr)
        sys.exit(1)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.stdout.write(_render(args, result.periods, result.duration, points=result.mode == "hard_cut"))
