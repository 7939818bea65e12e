"""Orchestrator — exports every clip in a clip list, one encoder run per row."""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Callable

from clipsplit import ffutil
from clipsplit.errors import OutputDirectoryError, VideoNotFoundError
from clipsplit.models import ClipSpec, ProgressEvent, RowResult, RunStatus, RunSummary
from clipsplit.rows import RowSourceError, normalize_rows, read_clip_rows, row_label
from clipsplit.settings import ExportSettings, normalize_settings
from clipsplit.supervisor import RunContext
from clipsplit.timecode import parse_timecode

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


def _load_rows(
    csv_path: str | Path | None,
    edited_rows: Iterable[Mapping | ClipSpec] | None,
) -> list[ClipSpec]:
    if edited_rows is not None:
        return normalize_rows(edited_rows)
    if csv_path is None:
        raise RowSourceError("No CSV file or rows supplied")
    rows = read_clip_rows(csv_path)
    if not rows:
        raise RowSourceError("CSV has no rows")
    return rows


def _check_range(idx: int, clip: ClipSpec) -> str | None:
    """Return the skip message for an unusable time range, else None."""
    num = row_label(idx)
    start = parse_timecode(clip.start)
    if start is None:
        return f"Row {num} skipped: invalid start time '{clip.start}'"
    end = parse_timecode(clip.end)
    if end is None:
        return f"Row {num} skipped: invalid end time '{clip.end}'"
    if end <= start:
        return f"Row {num} skipped: end time must be greater than start time"
    return None


def run_export(
    video_path: str | Path,
    output_dir: str | Path,
    *,
    csv_path: str | Path | None = None,
    edited_rows: Iterable[Mapping | ClipSpec] | None = None,
    settings: Mapping | ExportSettings | None = None,
    context: RunContext | None = None,
    on_progress: ProgressCallback | None = None,
) -> RunSummary:
    """Export each clip of the clip list to ``output_dir``.

    Args:
        video_path: Source video every clip is cut from.
        output_dir: Destination directory, created if missing.
        csv_path: CSV clip list; ignored when ``edited_rows`` is given.
        edited_rows: Pre-edited rows that replace the CSV.
        settings: Raw or already-built export settings; normalized here.
        context: Shared process/stop state; a stop request from another
            thread goes through ``context.request_stop()``.
        on_progress: Optional callback receiving each ProgressEvent.

    Raises ExportError subclasses for run-level failures before any row runs.
    Bad rows and failed encodes are reported in the returned summary.
    """
    context = context or RunContext()

    def _progress(**kwargs) -> None:
        if on_progress:
            on_progress(ProgressEvent(**kwargs))

    context.reset()
    settings = normalize_settings(settings)

    ffutil.check_ffmpeg()

    clips = _load_rows(csv_path, edited_rows)
    total = len(clips)

    source_video = Path(video_path)
    if not source_video.exists():
        raise VideoNotFoundError(f"Video file not found: {video_path}")

    output_path = Path(output_dir)
    try:
        output_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputDirectoryError(f"Failed to create output directory: {e}") from e

    logger.info(
        f"Export started: {total} rows from {source_video} -> {output_path} "
        f"(mode={settings.processing_mode.value})"
    )

    exported = skipped = failed = 0
    errors: list[str] = []
    extension = ffutil.output_extension(source_video, settings)

    _progress(
        total=total,
        completed=0,
        current_clip="",
        status=RunStatus.RUNNING,
        message="Starting export...",
    )

    for idx, clip in enumerate(clips):
        if context.stop_requested:
            logger.info(f"Export stopped before row {row_label(idx)}")
            _progress(
                total=total,
                completed=idx,
                current_clip=clip.name,
                status=RunStatus.STOPPED,
                message="Export stopped by user",
                row_index=idx,
                row_result=RowResult.FAILED,
            )
            break

        problem = _check_range(idx, clip)
        if problem:
            skipped += 1
            errors.append(problem)
            logger.warning(problem)
            _progress(
                total=total,
                completed=idx + 1,
                current_clip=clip.name,
                status=RunStatus.RUNNING,
                message=problem,
                row_index=idx,
                row_result=RowResult.FAILED,
            )
            continue

        destination = output_path / ffutil.destination_name(idx, clip, extension)
        cmd = ffutil.build_command(clip, settings, source_video, destination)
        logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        _progress(
            total=total,
            completed=idx,
            current_clip=clip.name,
            status=RunStatus.RUNNING,
            message=f"Exporting clip {idx + 1} of {total}",
            row_index=idx,
            row_result=RowResult.RUNNING,
        )

        context.spawn(cmd)
        returncode = context.wait()

        if context.stop_requested:
            failed += 1
            errors.append(f"Stopped while exporting row {row_label(idx)}")
            logger.info(f"Export stopped while encoding row {row_label(idx)}")
            break

        ok = returncode == 0 and destination.exists()
        if ok:
            exported += 1
        else:
            failed += 1
            message = f"Row {row_label(idx)} failed ({clip.name})"
            errors.append(message)
            logger.warning(f"{message}: ffmpeg exit code {returncode}, output exists={destination.exists()}")

        _progress(
            total=total,
            completed=idx + 1,
            current_clip=clip.name,
            status=RunStatus.RUNNING,
            message=f"Finished clip {idx + 1} of {total}",
            row_index=idx,
            row_result=RowResult.SUCCESS if ok else RowResult.FAILED,
        )

    status = RunStatus.STOPPED if context.stop_requested else RunStatus.DONE
    summary_message = f"Done. Exported: {exported}, Skipped: {skipped}, Failed: {failed}"
    _progress(
        total=total,
        completed=exported + failed + skipped,
        current_clip="",
        status=status,
        message=summary_message,
    )
    logger.info(f"Export {status.value}: {summary_message}")

    return RunSummary(
        total_rows=total,
        exported=exported,
        skipped=skipped,
        failed=failed,
        errors=tuple(errors),
        status=status,
    )
