"""Export settings — closed enums, normalization and JSON settings files."""

import json
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path


class ProcessingMode(str, Enum):
    COPY_FAST = "copy_fast"
    REENCODE_FAST_SEEK = "reencode_fast_seek"
    REENCODE_PRECISE = "reencode_precise"


class Preset(str, Enum):
    ULTRAFAST = "ultrafast"
    SUPERFAST = "superfast"
    VERYFAST = "veryfast"
    FASTER = "faster"
    FAST = "fast"
    MEDIUM = "medium"


class Resolution(str, Enum):
    SOURCE = "source"
    P1080 = "1080p"
    P720 = "720p"
    P480 = "480p"


class AudioCodec(str, Enum):
    AAC = "aac"
    COPY = "copy"
    NONE = "none"


CRF_RANGE = (16, 35)
AUDIO_BITRATE_RANGE = (64, 320)
FPS_RANGE = (1.0, 120.0)


@dataclass(frozen=True)
class ExportSettings:
    """Encoder options for one export run."""

    processing_mode: ProcessingMode = ProcessingMode.COPY_FAST
    preset: Preset = Preset.ULTRAFAST
    crf: int = 20
    resolution: Resolution = Resolution.SOURCE
    audio_codec: AudioCodec = AudioCodec.AAC
    audio_bitrate_kbps: int = 128
    fps: float | None = None

    @property
    def reencode(self) -> bool:
        return self.processing_mode is not ProcessingMode.COPY_FAST

    def to_dict(self) -> dict:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        return data


def _member(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _clamped_int(value, bounds: tuple[int, int], default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    low, high = bounds
    return max(low, min(high, number))


def _valid_fps(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        fps = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    low, high = FPS_RANGE
    if not math.isfinite(fps) or not low <= fps <= high:
        return None
    return fps


def normalize_settings(raw: Mapping | ExportSettings | None = None) -> ExportSettings:
    """Translate untrusted settings into a valid ExportSettings.

    Unknown enum values fall back to the fastest/safest member, numbers are
    clamped into range and an unusable fps is dropped.  Never raises for bad
    values.
    """
    if raw is None:
        raw = {}
    elif isinstance(raw, ExportSettings):
        raw = raw.to_dict()

    defaults = ExportSettings()
    return ExportSettings(
        processing_mode=_member(
            ProcessingMode, raw.get("processing_mode"), ProcessingMode.COPY_FAST
        ),
        preset=_member(Preset, raw.get("preset"), Preset.ULTRAFAST),
        crf=_clamped_int(raw.get("crf", defaults.crf), CRF_RANGE, defaults.crf),
        resolution=_member(Resolution, raw.get("resolution"), Resolution.SOURCE),
        audio_codec=_member(AudioCodec, raw.get("audio_codec"), AudioCodec.AAC),
        audio_bitrate_kbps=_clamped_int(
            raw.get("audio_bitrate_kbps", defaults.audio_bitrate_kbps),
            AUDIO_BITRATE_RANGE,
            defaults.audio_bitrate_kbps,
        ),
        fps=_valid_fps(raw.get("fps")),
    )


def load_settings(path: str | Path, overrides: Mapping | None = None) -> ExportSettings:
    """Load settings from a JSON file, apply ``overrides`` and normalize."""
    path = Path(path)
    data = json.loads(path.read_text())

    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a JSON object")

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return normalize_settings(data)
