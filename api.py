"""Lightweight HTTP API serving the tap list.

Exposes:
- GET /  → the current tap list as a JSON array
"""

import os
from typing import Optional

from flask import Flask, Response, jsonify

from tap_extractor import Config, TapListPipeline
from tap_extractor.exceptions import TapListError
from tap_extractor.utils import setup_logger, set_log_level


logger = setup_logger("tap_extractor.api")


def create_app(config: Optional[Config] = None,
               pipeline: Optional[TapListPipeline] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Configuration (read from the environment if None)
        pipeline: Pipeline to serve from (built from config if None)

    Returns:
        Flask app with the pipeline stored in app.config["PIPELINE"]
    """
    config = config or (pipeline.config if pipeline else Config.from_env())
    pipeline = pipeline or TapListPipeline(config)

    app = Flask(__name__)
    app.config["PIPELINE"] = pipeline

    @app.after_request
    def add_cors_headers(response):
        """Simple CORS headers so browser dashboards can read the list."""
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET"
        return response

    @app.route("/", methods=["GET"])
    def tap_list():
        try:
            document = pipeline.get_document()
        except TapListError as e:
            logger.error(f"Tap list unavailable: {e}")
            return jsonify({"error": str(e)}), 502
        return Response(document.payload, status=200, mimetype="application/json")

    if config.warm_on_start:
        logger.info("Gathering tap info for the first time, this may take a while")
        try:
            document = pipeline.get_document()
            logger.info(f"Tap info gathered: {document.record_count} tap(s)")
        except TapListError as e:
            logger.error(f"Initial tap list build failed: {e}")

    return app


def serve(config: Config) -> None:
    """Run the development server for the given configuration."""
    set_log_level(config.log_level)
    app = create_app(config)
    logger.info(f"Starting API server on {config.host}:{config.port}")
    app.run(host=config.host, port=config.port)


if __name__ == "__main__":
    serve(Config.from_env(os.environ))
