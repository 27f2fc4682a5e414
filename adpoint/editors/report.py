"""Report rendering: text, plain numbers, or JSON."""

import json
from dataclasses import dataclass

from adpoint.models import Period

NO_POINTS_MESSAGE = "No suitable ad insertion points detected."


@dataclass
class ReportOptions:
    """Which fields and blocks a rendered report includes."""

    show_decimal: bool = True
    show_mmss: bool = True
    show_start: bool = True
    show_midpoint: bool = True
    show_end: bool = True
    show_duration: bool = True


def format_mmss(seconds: float) -> str:
    m = int(seconds // 60)
    s = seconds - m * 60
    return f"{m:02d}:{s:06.3f}"


def _fields(period: Period, opts: ReportOptions, points: bool) -> list[tuple[str, float]]:
    if points:
        return [("Point", period.start)] if opts.show_midpoint else []
    fields = []
    if opts.show_start:
        fields.append(("Start", period.start))
    if opts.show_midpoint:
        fields.append(("Midpoint", period.midpoint))
    if opts.show_end:
        fields.append(("End", period.end))
    return fields


def render_text(
    periods: list[Period],
    duration: float | None = None,
    opts: ReportOptions | None = None,
    points: bool = False,
) -> str:
    """Human-readable report.

    ``points`` renders zero-length periods (hard cuts) as single instants.
    """
    opts = opts or ReportOptions()
    lines: list[str] = []
    if duration is not None and opts.show_duration:
        lines.append(f"Video duration: {duration:.3f}")

    if not periods:
        lines.append(NO_POINTS_MESSAGE)
        return "\n".join(lines) + "\n"

    heading = "Potential ad insertion point:" if points else "Potential ad insertion period:"
    for p in periods:
        lines.append(heading)
        fields = _fields(p, opts, points)
        if opts.show_decimal and fields:
            lines.append("\tDecimal seconds:")
            lines.extend(f"\t\t{name}: {value:.3f}" for name, value in fields)
            lines.append("")
        if opts.show_mmss and fields:
            lines.append("\tMM:SS.d")
            lines.extend(f"\t\t{name}: {format_mmss(value)}" for name, value in fields)
            lines.append("")
    return "\n".join(lines) + "\n"


def render_plain(
    periods: list[Period],
    opts: ReportOptions | None = None,
    points: bool = False,
) -> str:
    """Space-separated decimal seconds, one line for the whole report."""
    opts = opts or ReportOptions()
    if not opts.show_decimal:
        return ""
    values = [f"{value:.3f}" for p in periods for _, value in _fields(p, opts, points)]
    return " ".join(values) + "\n" if values else ""


def render_json(periods: list[Period], duration: float | None = None, **extra) -> str:
    data = {
        "duration": duration,
        "periods": [
            {"start": round(p.start, 3), "midpoint": round(p.midpoint, 3), "end": round(p.end, 3)}
            for p in periods
        ],
        **extra,
    }
    return json.dumps(data, indent=2)
