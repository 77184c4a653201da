"""JSON error responses for the web API."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from ..errors import RelayError, UploadTooLargeError


def error_response(error: RelayError, status_code: int | None = None):
    response = jsonify(error.to_dict())
    response.status_code = status_code or error.status_code
    return response


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RelayError)
    def handle_relay_error(error: RelayError):
        if error.status_code >= 500:
            logging.error("%s: %s", error.code, error.message)
        else:
            logging.info("Rejected request (%s): %s", error.code, error.message)
        return error_response(error)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error: RequestEntityTooLarge):
        max_mb = app.config["MAX_UPLOAD_BYTES"] / (1024 * 1024)
        return error_response(UploadTooLargeError(f"File too large. Maximum {max_mb:.0f}MB"), 413)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        response = jsonify({"error": (error.name or "error").lower().replace(" ", "_"), "message": error.description})
        response.status_code = error.code or 500
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logging.exception("Unhandled error while serving request")
        response = jsonify(
            {
                "error": "internal_error",
                "message": "An unexpected error occurred",
                "details": type(error).__name__,
            }
        )
        response.status_code = 500
        return response
