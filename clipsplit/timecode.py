"""Time-code parsing: ``[[[HH:]MM:]SS][:FF]`` text to seconds."""

import math
import re

FRAME_RATE = 30.0

# Per-field grammar; rejects whitespace, underscores, inf and nan that
# float() would otherwise accept.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _field(text: str) -> float | None:
    if not _NUMBER_RE.fullmatch(text):
        return None
    return float(text)


def _combine(values: list[float]) -> float | None:
    if len(values) == 4:
        h, m, s, f = values
        return h * 3600.0 + m * 60.0 + s + f / FRAME_RATE
    if len(values) == 3:
        h, m, s = values
        return h * 3600.0 + m * 60.0 + s
    if len(values) == 2:
        m, s = values
        return m * 60.0 + s
    if len(values) == 1:
        return values[0]
    return None


def parse_timecode(text: str | float | None) -> float | None:
    """Convert a time-code to seconds, or return None if it is malformed.

    One to four colon-separated numeric fields are accepted and read
    right-to-left as seconds, minutes, hours.  With four fields the last one
    is a frame count at 30 fps.  Numbers passed in are returned as floats.
    Anything that does not come out finite (NaN, infinity, an overflowing
    exponent) is rejected.
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        seconds = float(text)
    elif text is None:
        return None
    else:
        text = text.strip()
        if not text:
            return None
        values = [_field(part) for part in text.split(":")]
        if any(v is None for v in values):
            return None
        seconds = _combine(values)

    if seconds is None or not math.isfinite(seconds):
        return None
    return seconds


def format_seconds(value: float) -> str:
    """Render seconds for an ffmpeg argument without a trailing ``.0``."""
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text
