#!/usr/bin/env python3
"""Generate a synthetic "episode" with fade-to-black ad breaks for AdPoint.

Programme segments are a tone over a coloured frame; each ad break is a short
stretch of silence over black. With the default layout the detector should
report breaks around 8.0s and 18.5s; the black lead-in at 0s falls inside the
edge exclusion zone.

  0.0-0.5    silence + black   (lead-in)
  0.5-8.0    440 Hz tone + blue
  8.0-8.5    silence + black   (break 1)
  8.5-18.5   660 Hz tone + red
  18.5-19.0  silence + black   (break 2)
  19.0-30.0  880 Hz tone + green
"""

import subprocess
import sys
from pathlib import Path

# (kind, duration, tone Hz or None, colour)
LAYOUT = [
    ("break", 0.5, None, "black"),
    ("show", 7.5, 440, "blue"),
    ("break", 0.5, None, "black"),
    ("show", 10.0, 660, "red"),
    ("break", 0.5, None, "black"),
    ("show", 11.0, 880, "green"),
]


def build_filter(layout=LAYOUT) -> str:
    audio, video = [], []
    for i, (_, dur, tone, colour) in enumerate(layout):
        if tone is None:
            audio.append(f"anullsrc=r=44100:cl=mono,atrim=duration={dur}[a{i}]")
        else:
            audio.append(f"sine=f={tone}:d={dur}[a{i}]")
        video.append(f"color=c={colour}:s=320x240:d={dur}:r=30[v{i}]")

    n = len(layout)
    a_labels = "".join(f"[a{i}]" for i in range(n))
    v_labels = "".join(f"[v{i}]" for i in range(n))
    return ";".join(
        audio
        + [f"{a_labels}concat=n={n}:v=0:a=1[aout]"]
        + video
        + [f"{v_labels}concat=n={n}:v=1:a=0[vout]"]
    )


def generate_test_video(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", build_filter(),
        "-map", "[vout]",
        "-map", "[aout]",
        "-c:v", "libx264",
        "-c:a", "aac",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/synthetic.mp4")
    generate_test_video(out)
