"""Upload endpoint that parses an M3U file into structured entries."""

from __future__ import annotations

import os

from flask import Blueprint, current_app, jsonify, request

from ..errors import InvalidFileTypeError, MissingUploadError, UploadTooLargeError
from ..playlist.parser import parse_stream

ALLOWED_EXTENSIONS = (".m3u", ".m3u8")

PARSE_INFO = {
    "name": "M3U Streaming Parser",
    "version": "1.0.0",
    "features": [
        "Streaming parse with chunk processing",
        "Support for large files up to the configured upload limit",
        "Extract tvg-name, tvg-logo, tvg-id, tvg-country, tvg-language, group-title",
        "Automatic grouping",
        "UTF-8 encoding support",
    ],
    "supportedFormats": list(ALLOWED_EXTENSIONS),
}

bp = Blueprint("parse", __name__, url_prefix="/api/m3u")


def _upload_size(stream) -> int:
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


@bp.get("/parse")
def parse_info():
    return jsonify(PARSE_INFO)


@bp.post("/parse")
def parse_upload():
    settings = current_app.extensions["m3u_relay"].settings

    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise MissingUploadError("A playlist file is required")
    if not upload.filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise InvalidFileTypeError("Invalid file format. Please upload a .m3u or .m3u8 file")

    size = _upload_size(upload.stream)
    if size > settings.max_upload_bytes:
        raise UploadTooLargeError(f"File too large. Maximum {settings.max_upload_mb:.0f}MB")

    result = parse_stream(upload.stream, chunk_size=settings.chunk_size)
    return jsonify(result.model_dump(by_alias=True, exclude_none=True))
