"""Flask application factory for the AdPoint web UI."""

import logging
import tempfile
from pathlib import Path

from flask import Flask, jsonify

logger = logging.getLogger(__name__)


def create_app(work_dir: Path | None = None) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="adpoint_"))
    app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024 * 1024  # 10 GB

    from adpoint.web.routes import InvalidJobConfig, bp
    app.register_blueprint(bp)

    @app.errorhandler(InvalidJobConfig)
    def invalid_job_config(error):
        logger.info("Rejected process request: %s", error)
        return jsonify({"error": f"Invalid detection request: {error}"}), 400

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "Video too large"}), 413

    return app
