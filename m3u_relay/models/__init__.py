"""Data models for playlist entries, group summaries and API requests."""

from .entry_models import DEFAULT_GROUP, UNKNOWN_NAME, Entry, GroupSummary, ParseResult, PlaylistItem
from .request_models import GenerateRequest

__all__ = [
    "DEFAULT_GROUP",
    "UNKNOWN_NAME",
    "PlaylistItem",
    "Entry",
    "GroupSummary",
    "ParseResult",
    "GenerateRequest",
]
