"""Flask application factory for the clipsplit control API."""

import tempfile
from pathlib import Path

from flask import Flask, jsonify

# Only clip-list CSVs are uploaded; videos are referenced by path.
MAX_CSV_UPLOAD_BYTES = 16 * 1024 * 1024


def create_app(work_dir: Path | None = None, max_upload_bytes: int = MAX_CSV_UPLOAD_BYTES) -> Flask:
    """Build the API app.  Uploaded CSVs are saved under ``work_dir``."""
    app = Flask(__name__)
    if work_dir is None:
        work_dir = Path(tempfile.mkdtemp(prefix="clipsplit_"))
    app.config["WORK_DIR"] = Path(work_dir)
    app.config["MAX_CONTENT_LENGTH"] = max_upload_bytes

    from clipsplit.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def csv_too_large(error):
        limit_kb = app.config["MAX_CONTENT_LENGTH"] // 1024
        return jsonify({"error": f"CSV file too large (limit {limit_kb} KB)"}), 413

    return app
