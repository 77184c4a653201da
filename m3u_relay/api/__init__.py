"""Flask application exposing the parse, generate and relay endpoints."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from ..config import Settings, load_settings
from ..downloader.relay import DownloadRelay
from ..utils.http_client import HttpClient
from .download_api import bp as download_bp
from .errors import register_error_handlers
from .parse_api import bp as parse_bp

# slack for multipart framing on top of the file ceiling
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


class AppState:
    """Process-wide collaborators, read-only once the app is built."""

    def __init__(self, settings: Settings, http_client: HttpClient) -> None:
        self.settings = settings
        self.http_client = http_client
        self.relay = DownloadRelay(http_client, chunk_size=settings.relay_chunk_size)


def create_app(settings: Optional[Settings] = None, http_client: Optional[HttpClient] = None) -> Flask:
    settings = settings or load_settings()
    http_client = http_client or HttpClient(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        user_agent=settings.user_agent,
        accept_language=settings.accept_language,
    )

    app = Flask(__name__)
    app.config["MAX_UPLOAD_BYTES"] = settings.max_upload_bytes
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
    app.json.sort_keys = False
    app.extensions["m3u_relay"] = AppState(settings, http_client)

    app.register_blueprint(parse_bp)
    app.register_blueprint(download_bp)
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


__all__ = ["AppState", "create_app"]
