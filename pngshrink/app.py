from __future__ import annotations

import io
from dataclasses import asdict

from flask import Flask, jsonify, request, send_file

from .config import SETTINGS, OptimizerSettings, configure_logging
from .errors import DecodeError, PngShrinkError, RasterError, SourceError
from .infrastructure.network import SessionFactory, SourceFetcher, is_remote
from .processing.pipeline import optimize_png

APP_VERSION = "1.0.0"


def create_app(
    settings: OptimizerSettings = SETTINGS,
    fetcher: SourceFetcher | None = None,
    session_factory: SessionFactory | None = None,
) -> Flask:
    logger = configure_logging()
    fetcher = fetcher or SourceFetcher(session_factory=session_factory, settings=settings)
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes

    def send_optimized(payload: bytes):
        result = optimize_png(payload, settings=settings)
        response = send_file(io.BytesIO(result.data), mimetype="image/png")
        response.headers["X-Filter-Strategy"] = result.candidate.strategy.name
        response.headers["X-Color-Layout"] = result.layout.name
        response.headers["X-Original-Size"] = str(len(payload))
        return response

    @app.errorhandler(SourceError)
    def source_error(exc: SourceError):
        return (f"Source Error: {exc}", 502)

    @app.errorhandler(DecodeError)
    @app.errorhandler(RasterError)
    def bad_image(exc: PngShrinkError):
        return (f"Decode Error: {exc}", 400)

    @app.errorhandler(PngShrinkError)
    def optimizer_error(exc: PngShrinkError):
        logger.error("optimization failed: %s", exc)
        return (f"error: {exc}", 500)

    @app.route("/optimize", methods=["POST"])
    def optimize_upload():
        upload = request.files.get("file")
        payload = upload.read() if upload is not None else request.get_data()
        if not payload:
            return ("empty request body", 400)
        return send_optimized(payload)

    @app.route("/optimize", methods=["GET"])
    def optimize_remote():
        source_url = request.args.get("source_url", "")
        if not is_remote(source_url):
            return ("source_url must be an http(s) URL", 400)
        return send_optimized(fetcher.fetch_url(source_url))

    @app.route("/health")
    def health():
        return jsonify(ok=True, version=APP_VERSION, settings=asdict(settings))

    return app


def serve() -> None:
    """Run the Flask development server."""
    create_app().run(host="0.0.0.0", port=SETTINGS.port, debug=False)
