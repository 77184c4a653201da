"""Shared outbound HTTP client for relayed and downloaded media."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import aiohttp
import requests

from ..config import DEFAULT_ACCEPT_LANGUAGE, DEFAULT_USER_AGENT

UPSTREAM_HEADERS_TEMPLATE: Dict[str, str] = {
    "user-agent": DEFAULT_USER_AGENT,
    "accept": "*/*",
    "accept-language": DEFAULT_ACCEPT_LANGUAGE,
}


class HttpClient:
    """Opens streaming upstream requests with browser-like headers.

    The synchronous ``requests`` session backs the web relay; the lazily created
    ``aiohttp`` session backs the concurrent CLI downloader.
    """

    def __init__(
        self,
        connect_timeout: float = 10.0,
        read_timeout: float = 60.0,
        user_agent: str = DEFAULT_USER_AGENT,
        accept_language: str = DEFAULT_ACCEPT_LANGUAGE,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

        self._headers = UPSTREAM_HEADERS_TEMPLATE.copy()
        self._headers["user-agent"] = user_agent
        self._headers["accept-language"] = accept_language

        self._session = session or requests.Session()
        self._session.headers.update(self._headers)

        self._async_session: Optional[aiohttp.ClientSession] = None
        self._async_lock: Optional[asyncio.Lock] = None
        self._async_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def default_headers(self) -> Dict[str, str]:
        return self._headers.copy()

    def open_stream(self, url: str, headers: Dict[str, str]) -> requests.Response:
        """GET ``url`` without reading the body; the caller must close the response."""

        try:
            return self._session.get(
                url,
                headers=headers,
                stream=True,
                allow_redirects=True,
                timeout=(self.connect_timeout, self.read_timeout),
            )
        except requests.RequestException as exc:
            logging.error("Upstream request to %s failed: %s", url, exc)
            raise

    async def download_stream(
        self,
        url: str,
        dest_path: str,
        offset: int = 0,
        chunk_size: int = 1 << 16,
    ) -> int:
        """Asynchronously writes ``url`` to ``dest_path`` and returns the HTTP status.

        A positive ``offset`` asks for the remainder with a ``Range`` header; a 206
        reply is appended to the file, a 200 reply rewrites it from the start, and a
        416 reply leaves the file untouched.
        """

        session = await self._get_async_session()
        # range offsets count encoded bytes, so the body must arrive unencoded
        headers = {"accept-encoding": "identity"}
        if offset > 0:
            headers["range"] = f"bytes={offset}-"
        async with session.get(url, headers=headers) as resp:
            if resp.status == 416 and offset > 0:
                return resp.status
            resp.raise_for_status()
            mode = "ab" if resp.status == 206 and offset > 0 else "wb"
            with open(dest_path, mode) as file_obj:
                async for chunk in resp.content.iter_chunked(chunk_size):
                    if chunk:
                        file_obj.write(chunk)
            return resp.status

    async def _get_async_session(self) -> aiohttp.ClientSession:
        current_loop = asyncio.get_running_loop()
        if self._async_session:
            if (
                self._async_session.closed
                or not self._async_loop
                or self._async_loop.is_closed()
                or self._async_loop is not current_loop
            ):
                await self.aclose()

        if self._async_lock is None:
            self._async_lock = asyncio.Lock()

        async with self._async_lock:
            if self._async_session and not self._async_session.closed:
                return self._async_session
            timeout = aiohttp.ClientTimeout(sock_connect=self.connect_timeout, sock_read=self.read_timeout)
            connector = aiohttp.TCPConnector(limit=0)
            self._async_session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers=self._headers.copy(),
            )
            self._async_loop = current_loop
        return self._async_session

    async def aclose(self) -> None:
        if self._async_session and not self._async_session.closed:
            await self._async_session.close()
        self._async_session = None
        self._async_loop = None
        self._async_lock = None

    def close(self) -> None:
        self._session.close()
        if self._async_session and not self._async_session.closed:
            asyncio.run(self.aclose())

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
