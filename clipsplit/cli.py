"""Thin CLI entry point — previews a clip CSV or runs the export engine."""

import argparse
import sys
import threading
from pathlib import Path

from clipsplit.engine import run_export
from clipsplit.errors import ExportError
from clipsplit.logsetup import setup_logging
from clipsplit.models import ProgressEvent, RunStatus
from clipsplit.rows import preview_csv
from clipsplit.settings import (
    AudioCodec,
    Preset,
    ProcessingMode,
    Resolution,
    load_settings,
    normalize_settings,
)
from clipsplit.supervisor import RunContext

EXIT_STOPPED = 130


def _choices(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipsplit",
        description="clipsplit — cut named clips out of one video from a CSV list.",
    )
    sub = parser.add_subparsers(dest="command")

    prev = sub.add_parser("preview", help="Validate a clip CSV without exporting")
    prev.add_argument("csv", type=Path, help="Clip list CSV (name, start, end)")

    exp = sub.add_parser("export", help="Export every clip in a CSV")
    exp.add_argument("video", type=Path, help="Source video file")
    exp.add_argument("csv", type=Path, help="Clip list CSV (name, start, end)")
    exp.add_argument("--output", "-o", type=Path, required=True, help="Output directory")
    exp.add_argument("--settings", "-s", type=Path, help="JSON file with export settings")
    exp.add_argument("--mode", choices=_choices(ProcessingMode), help="Processing mode")
    exp.add_argument("--preset", choices=_choices(Preset), help="x264 speed preset")
    exp.add_argument("--crf", type=int, help="x264 quality (16-35)")
    exp.add_argument("--resolution", choices=_choices(Resolution), help="Output resolution")
    exp.add_argument("--audio-codec", choices=_choices(AudioCodec), help="Audio handling")
    exp.add_argument("--audio-bitrate", type=int, help="AAC bitrate in kbps (64-320)")
    exp.add_argument("--fps", type=float, help="Force output frame rate")
    exp.add_argument("--debug", action="store_true", help="Verbose logging")
    exp.add_argument("--log-file", type=Path, help="Write logs to this file")

    serve = sub.add_parser("serve", help="Launch the web control API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    return parser


def _settings_from_args(args: argparse.Namespace):
    overrides = {
        "processing_mode": args.mode,
        "preset": args.preset,
        "crf": args.crf,
        "resolution": args.resolution,
        "audio_codec": args.audio_codec,
        "audio_bitrate_kbps": args.audio_bitrate,
        "fps": args.fps,
    }
    if args.settings:
        return load_settings(args.settings, overrides)
    return normalize_settings({k: v for k, v in overrides.items() if v is not None})


def _print_progress(event: ProgressEvent) -> None:
    if event.row_index is None:
        print(f"  [{event.completed}/{event.total}] {event.message}")
        return
    result = event.row_result.value if event.row_result else event.status.value
    print(f"  [{event.completed}/{event.total}] {event.current_clip}: {result} - {event.message}")


def _cmd_preview(csv_path: Path) -> int:
    preview = preview_csv(csv_path)
    print(f"{preview.total_rows} rows")
    for i, row in enumerate(preview.rows, 1):
        print(f"  {i:3d}. {row.name}  {row.start} -> {row.end}")
    if preview.validation_errors:
        print()
        print("Problems:")
        for problem in preview.validation_errors:
            print(f"  {problem}")
        return 1
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    setup_logging(debug=args.debug, log_path=args.log_file)
    settings = _settings_from_args(args)
    context = RunContext()
    outcome: dict = {}

    def run() -> None:
        try:
            outcome["summary"] = run_export(
                args.video,
                args.output,
                csv_path=args.csv,
                settings=settings,
                context=context,
                on_progress=_print_progress,
            )
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=run, name="clipsplit-export")
    worker.start()
    try:
        while worker.is_alive():
            worker.join(timeout=0.2)
    except KeyboardInterrupt:
        print("\nStopping export...", file=sys.stderr)
        context.request_stop()
        worker.join()

    if "error" in outcome:
        raise outcome["error"]

    summary = outcome["summary"]
    print()
    print(f"Exported: {summary.exported}  Skipped: {summary.skipped}  Failed: {summary.failed}")
    for err in summary.errors:
        print(f"  {err}")

    if summary.status is RunStatus.STOPPED:
        return EXIT_STOPPED
    return 1 if summary.failed else 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from clipsplit.web import create_app
        app = create_app()
        print(f"clipsplit API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False, threaded=True)
        return

    try:
        if args.command == "preview":
            code = _cmd_preview(args.csv)
        else:
            code = _cmd_export(args)
    except (ExportError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)
