"""Utility helpers for outbound HTTP, URL validation and filenames."""

from .file_utils import content_disposition, ensure_directory, sanitize_filename
from .http_client import HttpClient
from .url_guard import is_blocked_hostname, validate_target_url

__all__ = [
    "HttpClient",
    "content_disposition",
    "ensure_directory",
    "sanitize_filename",
    "is_blocked_hostname",
    "validate_target_url",
]
