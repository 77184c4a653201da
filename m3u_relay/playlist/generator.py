"""Serializes playlist entries back into M3U text."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, Tuple

from ..models import UNKNOWN_NAME, PlaylistItem
from ..utils.file_utils import sanitize_filename

HEADER_LINE = "#EXTM3U"
PLAYLIST_EXTENSION = "m3u"
PLAYLIST_CONTENT_TYPE = "audio/x-mpegurl; charset=utf-8"
FILENAME_STEM_LENGTH = 50
DEFAULT_FILENAME_STEM = "playlist"

# emitted attribute order
ATTRIBUTE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("tvg-name", "attribute_name"),
    ("tvg-logo", "logo_url"),
    ("tvg-id", "external_id"),
    ("tvg-country", "country"),
    ("tvg-language", "language"),
    ("group-title", "group_name"),
)


def _strip_line_breaks(value: str) -> str:
    return value.replace("\r", "").replace("\n", "")


def escape_attribute(value: Optional[str]) -> str:
    """The format has no quote escaping, so double quotes become single quotes."""

    if not value:
        return ""
    return _strip_line_breaks(value).replace('"', "'")


def escape_display_name(value: Optional[str]) -> str:
    cleaned = _strip_line_breaks(value or "").strip()
    return cleaned or UNKNOWN_NAME


def format_info_line(item: PlaylistItem) -> str:
    attributes: List[str] = []
    for key, field in ATTRIBUTE_FIELDS:
        value = escape_attribute(getattr(item, field))
        if value:
            attributes.append(f'{key}="{value}"')
    prefix = "#EXTINF:-1"
    if attributes:
        prefix = f"{prefix} {' '.join(attributes)}"
    return f"{prefix},{escape_display_name(item.display_name)}"


def generate_playlist(entries: Sequence[PlaylistItem]) -> str:
    """Returns the header line plus one info line and one URL line per entry."""

    lines = [HEADER_LINE]
    for item in entries:
        lines.append(format_info_line(item))
        lines.append(_strip_line_breaks(item.media_url).strip())
    return "\n".join(lines) + "\n"


def default_filename(entries: Sequence[PlaylistItem], today: Optional[date] = None) -> str:
    """Derives ``<first name>_<count>_<YYYY-MM-DD>`` for a download without a name."""

    first = entries[0] if entries else None
    source = (first.attribute_name or first.display_name) if first else ""
    stem = sanitize_filename(source, default=DEFAULT_FILENAME_STEM, max_length=FILENAME_STEM_LENGTH)
    stamp = (today or date.today()).isoformat()
    return f"{stem}_{len(entries)}_{stamp}"


def playlist_filename(entries: Sequence[PlaylistItem], requested: Optional[str] = None) -> str:
    """Final attachment name, always carrying the ``.m3u`` extension."""

    if requested and requested.strip():
        name = sanitize_filename(requested)
    else:
        name = default_filename(entries)
    if not name.lower().endswith((".m3u", ".m3u8")):
        name = f"{name}.{PLAYLIST_EXTENSION}"
    return name
