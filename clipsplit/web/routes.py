"""Control API routes: preview, start/stop an export, stream its progress."""

import json
import logging
import queue
import threading
import uuid
from pathlib import Path

from flask import Blueprint, Response, current_app, jsonify, request

from clipsplit.engine import run_export
from clipsplit.errors import ExportError
from clipsplit.rows import RowSourceError, preview_csv
from clipsplit.supervisor import RunContext

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)

PROGRESS_EVENT = "export-progress"
FINISHED_EVENT = "export-finished"

# In-memory job store: job_id -> job dict, oldest first
_jobs: dict[str, dict] = {}
_jobs_lock = threading.Lock()

# Finished jobs kept around for status queries
MAX_FINISHED_JOBS = 20


def _sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def _get_job(job_id: str) -> dict | None:
    with _jobs_lock:
        return _jobs.get(job_id)


def _prune_jobs_locked() -> None:
    """Drop the oldest finished jobs beyond MAX_FINISHED_JOBS.  Caller holds _jobs_lock."""
    finished = [job_id for job_id, job in _jobs.items() if job["status"] != "running"]
    for job_id in finished[: max(0, len(finished) - MAX_FINISHED_JOBS)]:
        del _jobs[job_id]


@bp.route("/api/preview", methods=["POST"])
def preview():
    if "file" in request.files:
        f = request.files["file"]
        if not f.filename:
            return jsonify({"error": "Empty filename"}), 400
        csv_path = Path(current_app.config["WORK_DIR"]) / f"{uuid.uuid4().hex[:12]}.csv"
        f.save(csv_path)
    else:
        body = request.get_json(silent=True) or {}
        if not body.get("csv_path"):
            return jsonify({"error": "csv_path or file is required"}), 400
        csv_path = Path(body["csv_path"])

    try:
        result = preview_csv(csv_path)
    except RowSourceError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result.to_dict())


@bp.route("/api/export", methods=["POST"])
def start_export():
    body = request.get_json(silent=True) or {}
    missing = [k for k in ("video_path", "output_dir") if not body.get(k)]
    if not body.get("csv_path") and body.get("edited_rows") is None:
        missing.append("csv_path")
    if missing:
        return jsonify({"error": f"Missing fields: {', '.join(missing)}"}), 400

    with _jobs_lock:
        if any(job["status"] == "running" for job in _jobs.values()):
            return jsonify({"error": "An export is already running"}), 409
        _prune_jobs_locked()

        job_id = uuid.uuid4().hex[:12]
        progress_queue: queue.Queue = queue.Queue()
        job = {
            "status": "running",
            "context": RunContext(),
            "progress_queue": progress_queue,
            "summary": None,
            "error": None,
        }
        _jobs[job_id] = job

    def run():
        try:
            summary = run_export(
                body["video_path"],
                body["output_dir"],
                csv_path=body.get("csv_path"),
                edited_rows=body.get("edited_rows"),
                settings=body.get("settings"),
                context=job["context"],
                on_progress=lambda event: progress_queue.put(event.to_dict()),
            )
            job["summary"] = summary.to_dict()
            job["status"] = summary.status.value
        except ExportError as e:
            job["status"] = "error"
            job["error"] = str(e)
        except Exception as e:
            logger.exception("Export job %s crashed", job_id)
            job["status"] = "error"
            job["error"] = str(e)
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True, name=f"export-{job_id}").start()
    return jsonify({"job_id": job_id, "status": "started"})


@bp.route("/api/jobs/<job_id>/stop", methods=["POST"])
def stop_export(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    try:
        job["context"].request_stop()
    except ExportError as e:
        return jsonify({"error": str(e)}), 500
    return jsonify({"status": job["status"], "stop_requested": True})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    q = job["progress_queue"]

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield _sse(FINISHED_EVENT, {"error": "timeout"})
                break
            if msg is None:
                if job["status"] == "error":
                    yield _sse(FINISHED_EVENT, {"error": job["error"]})
                else:
                    yield _sse(FINISHED_EVENT, {"summary": job["summary"]})
                break
            yield _sse(PROGRESS_EVENT, msg)

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    resp = {"status": job["status"]}
    if job["summary"] is not None:
        resp["summary"] = job["summary"]
    if job["status"] == "error":
        resp["error"] = job["error"]
    return jsonify(resp)
