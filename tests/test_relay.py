"""Unit tests for the download relay against an in-memory upstream."""

import pytest
import requests

from m3u_relay.downloader.relay import DownloadRelay
from m3u_relay.errors import BlockedUrlError, InvalidUrlError, UpstreamError

from .conftest import FakeUpstreamResponse


@pytest.fixture
def relay(http_client):
    return DownloadRelay(http_client, chunk_size=4)


class TestGates:
    @pytest.mark.parametrize(
        "url",
        [
            "http://127.0.0.1/a.mp4",
            "http://10.1.2.3/a.mp4",
            "http://192.168.1.1/a.mp4",
            "http://172.20.0.5/a.mp4",
            "http://169.254.1.1/a.mp4",
            "http://localhost/a.mp4",
            "http://0.0.0.0/a.mp4",
        ],
    )
    def test_blocked_hosts_never_reach_upstream(self, relay, fake_session, url):
        with pytest.raises(BlockedUrlError):
            relay.open(url)
        assert fake_session.calls == []

    def test_bad_scheme_never_reaches_upstream(self, relay, fake_session):
        with pytest.raises(InvalidUrlError):
            relay.open("file:///etc/passwd")
        assert fake_session.calls == []

    def test_public_address_is_fetched(self, relay, fake_session):
        relay.open("http://93.184.216.34/a.mp4")
        assert fake_session.calls[0]["url"] == "http://93.184.216.34/a.mp4"


class TestUpstreamRequest:
    def test_defaults(self, relay, fake_session):
        relay.open("http://cdn.test/a.mp4")
        call = fake_session.calls[0]
        headers = call["headers"]

        assert headers["range"] == "bytes=0-"
        assert headers["user-agent"] == "TestAgent/1.0"
        assert headers["accept-language"] == "en-US"
        assert headers["accept"] == "*/*"
        assert "if-range" not in headers
        assert call["stream"] is True
        assert call["allow_redirects"] is True
        assert call["timeout"] == (10.0, 60.0)

    def test_client_headers_are_forwarded(self, relay, fake_session):
        relay.open(
            "http://cdn.test/a.mp4",
            range_header="bytes=100-199",
            if_range='"etag-1"',
            user_agent="VLC/3.0",
            accept_language="de-DE",
            referer="http://relay.test/",
        )
        headers = fake_session.calls[0]["headers"]

        assert headers["range"] == "bytes=100-199"
        assert headers["if-range"] == '"etag-1"'
        assert headers["user-agent"] == "VLC/3.0"
        assert headers["accept-language"] == "de-DE"
        assert headers["referer"] == "http://relay.test/"


class TestUpstreamResponse:
    def test_partial_content_headers_are_copied(self, relay, fake_session):
        fake_session.next_response = FakeUpstreamResponse(
            status_code=206,
            headers={
                "Content-Type": "video/mp4",
                "Content-Length": "100",
                "Content-Range": "bytes 100-199/1000",
                "Accept-Ranges": "bytes",
                "Set-Cookie": "upstream=secret",
            },
        )
        response = relay.open("http://cdn.test/movie.mp4", filename="Film.mp4")

        assert response.status_code == 206
        assert response.headers["Content-Type"] == "video/mp4"
        assert response.headers["Content-Length"] == "100"
        assert response.headers["Content-Range"] == "bytes 100-199/1000"
        assert response.headers["Accept-Ranges"] == "bytes"
        assert "Set-Cookie" not in response.headers
        assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"
        assert response.headers["Content-Disposition"] == (
            "attachment; filename=\"Film.mp4\"; filename*=UTF-8''Film.mp4"
        )

    def test_filename_comes_from_url_path(self, relay):
        response = relay.open("http://cdn.test/path/My%20Movie%3F.mp4?token=1")
        assert 'filename="My Movie.mp4"' in response.headers["Content-Disposition"]

    def test_filename_defaults_to_download(self, relay):
        response = relay.open("http://cdn.test/")
        assert 'filename="download"' in response.headers["Content-Disposition"]

    @pytest.mark.parametrize("status", [301, 304, 403, 404, 416, 500, 503])
    def test_non_success_status_is_a_gateway_error(self, relay, fake_session, status):
        upstream = FakeUpstreamResponse(status_code=status)
        fake_session.next_response = upstream

        with pytest.raises(UpstreamError) as excinfo:
            relay.open("http://cdn.test/a.mp4")

        assert excinfo.value.upstream_status == status
        assert excinfo.value.to_dict()["status"] == status
        assert upstream.closed

    def test_unreachable_upstream(self, relay, fake_session):
        fake_session.raise_error = requests.ConnectionError("refused")
        with pytest.raises(UpstreamError) as excinfo:
            relay.open("http://cdn.test/a.mp4")
        assert excinfo.value.upstream_status is None
        assert excinfo.value.details == "ConnectionError"


class TestStreaming:
    def test_body_is_pulled_lazily(self, relay, fake_session):
        upstream = FakeUpstreamResponse(chunks=[b"aaaa", b"", b"bbbb", b"cc"])
        fake_session.next_response = upstream
        response = relay.open("http://cdn.test/a.mp4")

        body = response.iter_body()
        assert upstream.chunks_read == 0
        assert next(body) == b"aaaa"
        assert upstream.chunks_read == 1
        assert b"".join(body) == b"bbbbcc"
        assert upstream.closed

    def test_abandoned_stream_releases_upstream(self, relay, fake_session):
        upstream = FakeUpstreamResponse(chunks=[b"aaaa", b"bbbb", b"cccc"])
        fake_session.next_response = upstream
        response = relay.open("http://cdn.test/a.mp4")

        body = response.iter_body()
        next(body)
        body.close()

        assert upstream.closed
        assert upstream.chunks_read == 1
        assert response.closed

    def test_close_is_idempotent(self, relay, fake_session):
        response = relay.open("http://cdn.test/a.mp4")
        response.close()
        response.close()
        assert response.closed
