"""Filesystem helpers for safe filenames and download headers."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import quote

INVALID_FILENAME_CHARS = re.compile(r"[\x00-\x1f<>:\"/\\|?*]")
WHITESPACE_RUN = re.compile(r"\s+")
NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7e]")

DEFAULT_FILENAME = "download"
MAX_FILENAME_LENGTH = 160

VIDEO_EXTENSIONS = ("mp4", "m4v", "mkv", "avi", "mov", "flv", "wmv", "webm", "m3u8")
MOVIE_GROUP_HINTS = ("film", "movie", "vod", "dizi", "series", "show")


def sanitize_filename(
    value: str | None,
    default: str = DEFAULT_FILENAME,
    max_length: int = MAX_FILENAME_LENGTH,
) -> str:
    """Removes control and filesystem-illegal characters from ``value``."""

    cleaned = INVALID_FILENAME_CHARS.sub("", value or "")
    cleaned = WHITESPACE_RUN.sub(" ", cleaned).strip().rstrip(". ")
    cleaned = cleaned[:max_length].rstrip(". ")
    return cleaned or default


def content_disposition(filename: str | None, disposition: str = "attachment") -> str:
    """Builds a header value with an ASCII fallback and an RFC 5987 UTF-8 name."""

    safe = sanitize_filename(filename)
    ascii_fallback = NON_PRINTABLE_ASCII.sub("", safe) or DEFAULT_FILENAME
    encoded = quote(safe, safe="!~*'()")
    return f"{disposition}; filename=\"{ascii_fallback}\"; filename*=UTF-8''{encoded}"


def guess_extension(url: str, group_name: str | None = None) -> str:
    """Guesses a file extension for a media URL, falling back on the group name."""

    lowered = url.lower()
    for extension in VIDEO_EXTENSIONS:
        if f".{extension}" in lowered:
            return "mp4" if extension == "m4v" else extension
    group = (group_name or "").lower()
    if any(hint in group for hint in MOVIE_GROUP_HINTS):
        return "mp4"
    return "ts"


def ensure_directory(path: str) -> str:
    """Creates a directory (and its parents) if needed."""

    Path(path).mkdir(parents=True, exist_ok=True)
    return path
