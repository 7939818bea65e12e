"""Clip list loading: CSV reading, header aliasing and row normalization."""

import csv
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from clipsplit.errors import ExportError
from clipsplit.models import ClipSpec, CsvPreview
from clipsplit.timecode import parse_timecode

logger = logging.getLogger(__name__)

DEFAULT_CLIP_NAME = "clip"

NAME_ALIASES = ("clip name", "name", "clip")
START_ALIASES = ("clip start time", "start time", "start", "in")
END_ALIASES = ("clip end time", "end time", "end", "out")


class RowSourceError(ExportError):
    """The clip list could not be produced from its source."""


class MissingColumnError(RowSourceError):
    """A logical column has no matching header in the CSV."""

    def __init__(self, column: str):
        super().__init__(f"CSV missing {column} column")
        self.column = column


def normalize_header(text: str) -> str:
    """Lowercase, strip a BOM and fold ``_``/``-``/runs of whitespace to one space."""
    text = text.lstrip("\ufeff").strip().lower()
    text = text.replace("_", " ").replace("-", " ")
    return " ".join(text.split())


def find_header_index(headers: list[str], aliases: Iterable[str]) -> int | None:
    wanted = {normalize_header(a) for a in aliases}
    for i, header in enumerate(headers):
        if normalize_header(header) in wanted:
            return i
    return None


def _trim(value) -> str | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return str(value if value is not None else "").strip()


def _cell(record: list[str], index: int, default: str = "") -> str:
    return record[index] if index < len(record) else default


def _make_clip(name, start, end) -> ClipSpec | None:
    """Trim fields, drop all-blank filler rows, default a blank name."""
    name = str(name if name is not None else "").strip()
    start, end = _trim(start), _trim(end)
    if not name and start == "" and end == "":
        return None
    return ClipSpec(name=name or DEFAULT_CLIP_NAME, start=start, end=end)


def read_clip_rows(csv_path: str | Path) -> list[ClipSpec]:
    """Read the clip list from a CSV file.

    The header row is matched against several aliases per column.  A header-only
    file yields an empty list; callers decide whether that is an error.
    """
    path = Path(csv_path)
    if not path.exists():
        raise RowSourceError(f"CSV file not found: {csv_path}")

    try:
        with path.open(newline="", encoding="utf-8-sig") as fh:
            records = list(csv.reader(fh))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise RowSourceError(f"Failed to open CSV: {e}") from e

    headers = records[0] if records else []
    columns = []
    for label, aliases in (
        ("clip name", NAME_ALIASES),
        ("clip start time", START_ALIASES),
        ("clip end time", END_ALIASES),
    ):
        idx = find_header_index(headers, aliases)
        if idx is None:
            raise MissingColumnError(label)
        columns.append(idx)
    idx_name, idx_start, idx_end = columns

    rows: list[ClipSpec] = []
    for record in records[1:]:
        if not record:
            continue
        clip = _make_clip(
            _cell(record, idx_name, DEFAULT_CLIP_NAME),
            _cell(record, idx_start),
            _cell(record, idx_end),
        )
        if clip is not None:
            rows.append(clip)

    logger.debug(f"Read {len(rows)} clip rows from {path}")
    return rows


def normalize_rows(raw_rows: Iterable[Mapping | ClipSpec]) -> list[ClipSpec]:
    """Normalize caller-supplied rows (e.g. edited in a UI).

    Accepts mappings with ``clip_name``/``start_time``/``end_time`` keys (or
    ``name``/``start``/``end``) or ready-made ClipSpecs.  An empty result is
    an error.
    """
    rows: list[ClipSpec] = []
    for raw in raw_rows:
        if isinstance(raw, ClipSpec):
            name, start, end = raw.name, raw.start, raw.end
        else:
            name = raw.get("clip_name", raw.get("name", ""))
            start = raw.get("start_time", raw.get("start", ""))
            end = raw.get("end_time", raw.get("end", ""))
        clip = _make_clip(name, start, end)
        if clip is not None:
            rows.append(clip)

    if not rows:
        raise RowSourceError("No editable rows to export. Load a CSV first.")
    return rows


def row_label(index: int) -> int:
    """Spreadsheet row number for a zero-based data row (header is row 1)."""
    return index + 2


def validate_rows(rows: list[ClipSpec]) -> list[str]:
    """Return every time-code problem in ``rows`` without stopping early."""
    problems: list[str] = []
    for idx, row in enumerate(rows):
        num = row_label(idx)
        if not str(row.start).strip() or not str(row.end).strip():
            problems.append(f"Row {num} missing start/end time")
            continue

        start = parse_timecode(row.start)
        end = parse_timecode(row.end)
        if start is None:
            problems.append(f"Row {num} invalid start time: {row.start}")
        if end is None:
            problems.append(f"Row {num} invalid end time: {row.end}")
        if start is not None and end is not None and end <= start:
            problems.append(f"Row {num} end time must be greater than start time")
    return problems


def preview_csv(csv_path: str | Path) -> CsvPreview:
    """Resolve columns and validate every row without exporting anything."""
    rows = read_clip_rows(csv_path)
    return CsvPreview(
        total_rows=len(rows),
        rows=rows,
        validation_errors=validate_rows(rows),
    )
