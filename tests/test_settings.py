"""Tests for export settings normalization and loading."""

import json
import math
from pathlib import Path

import pytest

from clipsplit.settings import (
    AudioCodec,
    ExportSettings,
    Preset,
    ProcessingMode,
    Resolution,
    load_settings,
    normalize_settings,
)


class TestExportSettings:
    def test_defaults(self):
        s = ExportSettings()
        assert s.processing_mode is ProcessingMode.COPY_FAST
        assert s.preset is Preset.ULTRAFAST
        assert s.crf == 20
        assert s.resolution is Resolution.SOURCE
        assert s.audio_codec is AudioCodec.AAC
        assert s.audio_bitrate_kbps == 128
        assert s.fps is None
        assert s.reencode is False

    def test_to_dict_uses_plain_values(self):
        assert ExportSettings().to_dict()["processing_mode"] == "copy_fast"


class TestNormalizeSettings:
    def test_none_gives_defaults(self):
        assert normalize_settings(None) == ExportSettings()

    def test_crf_clamped_low(self):
        assert normalize_settings({"crf": 5}).crf == 16

    def test_crf_clamped_high(self):
        assert normalize_settings({"crf": 99}).crf == 35

    def test_bitrate_clamped(self):
        assert normalize_settings({"audio_bitrate_kbps": 1000}).audio_bitrate_kbps == 320
        assert normalize_settings({"audio_bitrate_kbps": 8}).audio_bitrate_kbps == 64

    def test_unknown_enums_fall_back(self):
        s = normalize_settings({
            "processing_mode": "bogus",
            "preset": "placebo",
            "resolution": "4k",
            "audio_codec": "flac",
        })
        assert s.processing_mode is ProcessingMode.COPY_FAST
        assert s.preset is Preset.ULTRAFAST
        assert s.resolution is Resolution.SOURCE
        assert s.audio_codec is AudioCodec.AAC

    def test_valid_values_kept(self):
        s = normalize_settings({
            "processing_mode": "reencode_fast_seek",
            "preset": "medium",
            "resolution": "480p",
            "audio_codec": "none",
            "fps": "24",
        })
        assert s.processing_mode is ProcessingMode.REENCODE_FAST_SEEK
        assert s.preset is Preset.MEDIUM
        assert s.resolution is Resolution.P480
        assert s.audio_codec is AudioCodec.NONE
        assert s.fps == 24.0

    @pytest.mark.parametrize("fps", [0, 0.5, 121, math.inf, math.nan, "fast", True])
    def test_unusable_fps_dropped(self, fps):
        assert normalize_settings({"fps": fps}).fps is None

    def test_non_numeric_numbers_use_defaults(self):
        s = normalize_settings({"crf": "high", "audio_bitrate_kbps": None})
        assert s.crf == 20
        assert s.audio_bitrate_kbps == 128

    def test_renormalizing_is_stable(self):
        s = normalize_settings({"crf": 30, "processing_mode": "reencode_precise"})
        assert normalize_settings(s) == s


class TestLoadSettings:
    def test_load_sample(self, sample_settings_path: Path):
        s = load_settings(sample_settings_path)
        assert s.processing_mode is ProcessingMode.REENCODE_PRECISE
        assert s.preset is Preset.VERYFAST
        assert s.resolution is Resolution.P720
        assert s.audio_bitrate_kbps == 192
        assert s.fps == 30.0

    def test_overrides_win(self, sample_settings_path: Path):
        s = load_settings(sample_settings_path, {"crf": 18, "preset": None})
        assert s.crf == 18
        assert s.preset is Preset.VERYFAST

    def test_load_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_settings(bad)

    def test_load_non_object(self, tmp_path: Path):
        bad = tmp_path / "list.json"
        bad.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_settings(bad)
