"""Streaming M3U parser, playlist generator and SSRF-guarded download relay."""

__version__ = "1.0.0"
