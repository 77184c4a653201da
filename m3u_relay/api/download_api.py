"""Playlist generation and single-entry relay endpoints."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context
from pydantic import ValidationError

from ..downloader.relay import NO_CACHE_HEADERS
from ..errors import InvalidRequestError, NoEntriesError
from ..models import GenerateRequest
from ..playlist.generator import PLAYLIST_CONTENT_TYPE, generate_playlist, playlist_filename
from ..utils.file_utils import content_disposition

DOWNLOAD_INFO = {
    "name": "M3U Download Endpoint",
    "version": "1.0.0",
    "features": [
        "Generate M3U files from selected entries",
        "Resumable download support via Accept-Ranges header",
        "Relay single entries with range requests (?url=...&filename=...)",
        "Automatic filename generation from tvg-name",
        "Safe filename generation",
    ],
}

bp = Blueprint("download", __name__, url_prefix="/api/m3u")


def _slice_for_range(response: Response, content: bytes) -> Response:
    """Answers a ``Range`` header against the fully buffered playlist."""

    requested = request.range
    if requested is None or len(requested.ranges) != 1:
        return response
    bounds = requested.range_for_length(len(content))
    if bounds is None:
        response.set_data(b"")
        response.status_code = 416
        response.headers["Content-Range"] = f"bytes */{len(content)}"
        return response
    start, stop = bounds
    response.set_data(content[start:stop])
    response.status_code = 206
    response.headers["Content-Range"] = requested.to_content_range_header(len(content))
    return response


@bp.post("/download")
def generate_download():
    payload = request.get_json(silent=True)
    if payload is None:
        raise InvalidRequestError("Request body must be a JSON object")
    try:
        body = GenerateRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidRequestError("Invalid entry list", details=f"{exc.error_count()} validation error(s)") from exc
    if not body.entries:
        raise NoEntriesError("No entries to download")

    content = generate_playlist(body.entries).encode("utf-8")
    filename = playlist_filename(body.entries, body.filename)

    response = Response(content, status=200, content_type=PLAYLIST_CONTENT_TYPE)
    response.headers["Content-Disposition"] = content_disposition(filename)
    response.headers["Accept-Ranges"] = "bytes"
    response.headers.update(NO_CACHE_HEADERS)
    return _slice_for_range(response, content)


@bp.get("/download")
def relay_download():
    target_url = request.args.get("url")
    if target_url is None:
        return jsonify(DOWNLOAD_INFO)

    relay = current_app.extensions["m3u_relay"].relay
    upstream = relay.open(
        target_url,
        range_header=request.headers.get("Range"),
        if_range=request.headers.get("If-Range"),
        user_agent=request.headers.get("User-Agent"),
        accept_language=request.headers.get("Accept-Language"),
        referer=request.host_url,
        filename=request.args.get("filename"),
    )
    headers = dict(upstream.headers)
    headers.setdefault("Content-Type", "application/octet-stream")
    response = Response(
        stream_with_context(upstream.iter_body()),
        status=upstream.status_code,
        headers=headers,
        direct_passthrough=True,
    )
    response.call_on_close(upstream.close)
    return response
