"""Relay and on-disk download of playlist media."""

from .media_downloader import MediaDownloader
from .relay import DownloadRelay, RelayResponse

__all__ = ["DownloadRelay", "RelayResponse", "MediaDownloader"]
