"""Streaming M3U parsing and regeneration."""

from .generator import generate_playlist, playlist_filename
from .parser import PlaylistParser, parse_stream, summarize_groups

__all__ = ["PlaylistParser", "parse_stream", "summarize_groups", "generate_playlist", "playlist_filename"]
