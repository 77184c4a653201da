"""Range-aware download relay that streams an upstream resource to the client."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Mapping, Optional
from urllib.parse import SplitResult, unquote

import requests

from ..errors import UpstreamError
from ..utils.file_utils import DEFAULT_FILENAME, content_disposition, sanitize_filename
from ..utils.http_client import HttpClient
from ..utils.url_guard import validate_target_url

DEFAULT_RANGE = "bytes=0-"
PASSTHROUGH_HEADERS = ("Content-Type", "Content-Length", "Content-Range", "Accept-Ranges")
NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def filename_from_url(parts: SplitResult) -> str:
    segment = parts.path.rsplit("/", 1)[-1]
    return unquote(segment) or DEFAULT_FILENAME


class RelayResponse:
    """An open upstream response plus the headers to send downstream.

    The body is pulled lazily; closing (or exhausting) the iterator releases the
    upstream connection.
    """

    def __init__(self, upstream: requests.Response, headers: Dict[str, str], chunk_size: int) -> None:
        self._upstream = upstream
        self.status_code = upstream.status_code
        self.headers = headers
        self.chunk_size = chunk_size
        self.closed = False

    def iter_body(self) -> Iterator[bytes]:
        try:
            for chunk in self._upstream.iter_content(chunk_size=self.chunk_size):
                if chunk:
                    yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._upstream.close()
        logging.debug("Released upstream connection for %s", self._upstream.url)


class DownloadRelay:
    """Validates a target URL and forwards a client's range request upstream."""

    def __init__(self, http_client: HttpClient, chunk_size: int = 16 * 1024) -> None:
        self._http_client = http_client
        self.chunk_size = chunk_size

    def build_upstream_headers(
        self,
        range_header: Optional[str] = None,
        if_range: Optional[str] = None,
        user_agent: Optional[str] = None,
        accept_language: Optional[str] = None,
        referer: Optional[str] = None,
    ) -> Dict[str, str]:
        defaults = self._http_client.default_headers
        headers = {
            "range": range_header or DEFAULT_RANGE,
            "user-agent": user_agent or defaults["user-agent"],
            "accept": "*/*",
            "accept-language": accept_language or defaults["accept-language"],
            # bytes are piped verbatim, so Content-Length must describe them
            "accept-encoding": "identity",
        }
        if if_range:
            headers["if-range"] = if_range
        if referer:
            headers["referer"] = referer
        return headers

    def build_response_headers(self, upstream_headers: Mapping[str, str], filename: str) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for name in PASSTHROUGH_HEADERS:
            value = upstream_headers.get(name)
            if value:
                headers[name] = value
        headers.update(NO_CACHE_HEADERS)
        headers["Content-Disposition"] = content_disposition(filename)
        return headers

    def open(
        self,
        target_url: Optional[str],
        range_header: Optional[str] = None,
        if_range: Optional[str] = None,
        user_agent: Optional[str] = None,
        accept_language: Optional[str] = None,
        referer: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> RelayResponse:
        """Runs every gate, then opens the upstream request.

        Raises :class:`~m3u_relay.errors.InvalidUrlError` or
        :class:`~m3u_relay.errors.BlockedUrlError` before any connection is made,
        and :class:`~m3u_relay.errors.UpstreamError` for unreachable upstreams or
        non-2xx answers.
        """

        parts = validate_target_url(target_url)
        url = parts.geturl()
        headers = self.build_upstream_headers(range_header, if_range, user_agent, accept_language, referer)

        try:
            upstream = self._http_client.open_stream(url, headers)
        except requests.RequestException as exc:
            raise UpstreamError("Download failed: upstream unreachable", details=type(exc).__name__) from exc

        if not 200 <= upstream.status_code < 300:
            logging.warning("Upstream %s answered %s", parts.hostname, upstream.status_code)
            upstream.close()
            raise UpstreamError("Download failed", upstream_status=upstream.status_code)

        final_name = sanitize_filename(filename or filename_from_url(parts))
        logging.info(
            "Relaying %s (status=%s, range=%s) as %s",
            parts.hostname,
            upstream.status_code,
            headers["range"],
            final_name,
        )
        return RelayResponse(upstream, self.build_response_headers(upstream.headers, final_name), self.chunk_size)
