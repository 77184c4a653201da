"""Exceptions raised by the parse, generate and relay operations."""

from __future__ import annotations

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base error carrying an HTTP status and a short machine-oriented code."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, *, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ClientInputError(RelayError):
    """Raised when the caller supplied something we refuse to process."""

    status_code = 400
    code = "bad_request"


class MissingUploadError(ClientInputError):
    code = "file_required"


class InvalidFileTypeError(ClientInputError):
    code = "invalid_file_type"


class UploadTooLargeError(ClientInputError):
    code = "file_too_large"


class EmptyPlaylistError(ClientInputError):
    """Raised before parsing when the input source holds no bytes at all."""

    code = "empty_file"


class NoEntriesError(ClientInputError):
    code = "no_entries"


class InvalidRequestError(ClientInputError):
    code = "invalid_request"


class InvalidUrlError(ClientInputError):
    code = "invalid_url"


class BlockedUrlError(ClientInputError):
    """Raised when a target host points at a private or loopback address."""

    code = "blocked_url"


class UpstreamError(RelayError):
    """Raised when the relayed resource answers with a non-success status."""

    status_code = 502
    code = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.upstream_status = upstream_status

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.upstream_status is not None:
            payload["status"] = self.upstream_status
        return payload
