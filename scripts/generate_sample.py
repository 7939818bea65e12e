#!/usr/bin/env python3
"""Generate a synthetic video and a matching clip CSV for manual clipsplit runs.

Produces a 20-second 320x240 test-pattern video (keyframe every second)
with a 440 Hz tone, plus a CSV listing four clips:
  intro        00:00:01 -> 00:00:04
  middle part  00:00:06 -> 00:00:10:15   (frames field)
  backwards    00:00:12 -> 00:00:11      (skipped by the exporter)
  ending       00:18    -> 00:20
"""

import csv
import subprocess
import sys
from pathlib import Path

CLIPS = [
    ("intro", "00:00:01", "00:00:04"),
    ("middle part", "00:00:06", "00:00:10:15"),
    ("backwards", "00:00:12", "00:00:11"),
    ("ending", "00:18", "00:20"),
]


def generate_sample(out_dir: Path, duration: int = 20) -> tuple[Path, Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    video = out_dir / "sample.mp4"
    clips_csv = out_dir / "clips.csv"

    cmd = [
        "ffmpeg", "-y",
        "-f", "lavfi", "-i", f"testsrc=s=320x240:r=30:d={duration}",
        "-f", "lavfi", "-i", f"sine=f=440:d={duration}",
        "-c:v", "libx264",
        "-g", "30",
        "-c:a", "aac",
        "-shortest",
        str(video),
    ]
    subprocess.run(cmd, check=True)

    with clips_csv.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(["Clip Name", "Start Time", "End Time"])
        writer.writerows(CLIPS)

    print(f"Generated: {video}")
    print(f"Generated: {clips_csv}")
    return video, clips_csv


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/sample")
    generate_sample(out)
