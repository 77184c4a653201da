"""Shared fixtures: an in-memory upstream and a Flask test client."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import pytest
from requests.structures import CaseInsensitiveDict

from m3u_relay.api import create_app
from m3u_relay.config import Settings
from m3u_relay.utils.http_client import HttpClient


class FakeUpstreamResponse:
    """Mimics the parts of ``requests.Response`` the relay touches."""

    def __init__(
        self,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        chunks: Iterable[bytes] = (b"",),
        url: str = "http://upstream.test/file",
    ) -> None:
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.url = url
        self._chunks = list(chunks)
        self.closed = False
        self.chunks_read = 0

    def iter_content(self, chunk_size: int = 1):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Records outbound GETs instead of touching the network."""

    def __init__(self) -> None:
        self.headers: Dict[str, str] = {}
        self.calls: List[dict] = []
        self.next_response = FakeUpstreamResponse()
        self.raise_error: Optional[Exception] = None
        self.closed = False

    def get(self, url: str, **kwargs) -> FakeUpstreamResponse:
        self.calls.append({"url": url, **kwargs})
        if self.raise_error is not None:
            raise self.raise_error
        return self.next_response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings() -> Settings:
    return Settings(max_upload_bytes=1024 * 1024, chunk_size=7)


@pytest.fixture
def http_client(fake_session: FakeSession) -> HttpClient:
    return HttpClient(user_agent="TestAgent/1.0", accept_language="en-US", session=fake_session)


@pytest.fixture
def app(settings: Settings, http_client: HttpClient):
    application = create_app(settings, http_client)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()
