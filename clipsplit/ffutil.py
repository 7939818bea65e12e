"""FFmpeg presence check and per-clip command construction."""

import re
import shutil
from pathlib import Path

from clipsplit.errors import ExportError
from clipsplit.models import ClipSpec
from clipsplit.settings import AudioCodec, ExportSettings, ProcessingMode, Resolution
from clipsplit.timecode import format_seconds, parse_timecode

DEFAULT_EXTENSION = "mp4"
FASTSTART_EXTENSIONS = ("mp4", "m4v")
VIDEO_CODEC = "libx264"

RESOLUTION_SIZES = {
    Resolution.P1080: (1920, 1080),
    Resolution.P720: (1280, 720),
    Resolution.P480: (854, 480),
}

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]+")


class FFmpegNotFoundError(ExportError):
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg is not on PATH."""
    if shutil.which("ffmpeg") is None:
        raise FFmpegNotFoundError(
            "ffmpeg not found in PATH. Install ffmpeg before running exports."
        )


def sanitize_filename(name: str) -> str:
    """Keep ``[A-Za-z0-9_-]``, collapse everything else into single hyphens."""
    compact = "-".join(p for p in _UNSAFE_RE.sub("-", name).split("-") if p)
    return compact or "clip"


def output_extension(source_video: Path, settings: ExportSettings) -> str:
    """Stream copy keeps the source container; re-encodes always write mp4."""
    if settings.processing_mode is ProcessingMode.COPY_FAST:
        ext = source_video.suffix.lstrip(".").lower()
        return ext or DEFAULT_EXTENSION
    return DEFAULT_EXTENSION


def destination_name(index: int, clip: ClipSpec, extension: str) -> str:
    """``001-clip-name-000005.mp4`` for the first row starting at 00:00:05."""
    start_label = str(clip.start).replace(":", "")
    return f"{index + 1:03d}-{sanitize_filename(clip.name)}-{start_label}.{extension}"


def resolution_filter(resolution: Resolution) -> str | None:
    """Scale to fit and letterbox to a fixed frame, or None for source size."""
    size = RESOLUTION_SIZES.get(resolution)
    if size is None:
        return None
    w, h = size
    return (
        f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2"
    )


def _clip_bounds(clip: ClipSpec) -> tuple[float, float]:
    start = parse_timecode(clip.start)
    end = parse_timecode(clip.end)
    if start is None or end is None:
        raise ValueError(f"Clip {clip.name!r} has an invalid time range")
    return start, end


def _video_args(settings: ExportSettings) -> list[str]:
    args = [
        "-c:v", VIDEO_CODEC,
        "-preset", settings.preset.value,
        "-crf", str(settings.crf),
    ]
    vf = resolution_filter(settings.resolution)
    if vf:
        args.extend(["-vf", vf])
    if settings.fps is not None:
        args.extend(["-r", format_seconds(settings.fps)])
    return args


def _audio_args(settings: ExportSettings) -> list[str]:
    if settings.audio_codec is AudioCodec.NONE:
        return ["-an"]
    if settings.audio_codec is AudioCodec.COPY:
        return ["-c:a", "copy"]
    return ["-c:a", "aac", "-b:a", f"{settings.audio_bitrate_kbps}k"]


def build_command(
    clip: ClipSpec,
    settings: ExportSettings,
    source_video: Path,
    destination: Path,
) -> list[str]:
    """Build the ffmpeg argument list that extracts ``clip`` into ``destination``.

    * ``copy_fast`` seeks before the input and stream-copies; cuts land on
      keyframes and every quality option is ignored.
    * ``reencode_fast_seek`` seeks before the input and re-encodes for
      ``end - start`` seconds.
    * ``reencode_precise`` seeks after the input (frame accurate, slower)
      and stops at ``end``.

    Raises ValueError if the clip's time-codes do not parse.
    """
    start, end = _clip_bounds(clip)
    duration = end - start

    cmd = ["ffmpeg", "-y", "-loglevel", "error", "-nostats"]

    if settings.processing_mode is ProcessingMode.COPY_FAST:
        cmd.extend([
            "-ss", format_seconds(start),
            "-i", str(source_video),
            "-t", format_seconds(duration),
            "-c", "copy",
        ])
    elif settings.processing_mode is ProcessingMode.REENCODE_FAST_SEEK:
        cmd.extend([
            "-ss", format_seconds(start),
            "-i", str(source_video),
            "-t", format_seconds(duration),
        ])
        cmd.extend(_video_args(settings))
    else:
        cmd.extend([
            "-i", str(source_video),
            "-ss", format_seconds(start),
            "-to", format_seconds(end),
        ])
        cmd.extend(_video_args(settings))

    if settings.reencode:
        cmd.extend(_audio_args(settings))

    if destination.suffix.lstrip(".").lower() in FASTSTART_EXTENSIONS:
        cmd.extend(["-movflags", "+faststart"])

    cmd.append(str(destination))
    return cmd
