"""Tests for rustwrap.remote.content module."""

from __future__ import annotations

import base64
import json

from rustwrap.core.result import Err, Ok
from rustwrap.remote.content import ContentClient, decode_content, rate_limit, remote_error
from rustwrap.remote.http import DEFAULT_USER_AGENT, HttpError, HttpResponse, MockHttpClient


class TestContentClient:
    """Test ContentClient request shaping."""

    def test_url_join(self) -> None:
        client = ContentClient(MockHttpClient(), api_base="https://api.example.com/")
        assert client.url("/repos/a/b") == "https://api.example.com/repos/a/b"

    def test_paths(self) -> None:
        client = ContentClient(MockHttpClient())
        assert client.release_path("a/b") == "repos/a/b/releases/latest"
        assert client.contents_path("a/tap", "recon.rb") == "repos/a/tap/contents/recon.rb"

    def test_get_without_token(self) -> None:
        http = MockHttpClient()
        ContentClient(http).get("repos/a/b/releases/latest")
        (req,) = http.requests
        assert req.url == "https://api.github.com/repos/a/b/releases/latest"
        assert req.headers["user-agent"] == DEFAULT_USER_AGENT
        assert "authorization" not in req.headers

    def test_get_with_token(self) -> None:
        http = MockHttpClient()
        ContentClient(http, token="secret").get("repos/a/b")
        assert http.requests[0].headers["authorization"] == "token secret"

    def test_put_sends_json(self) -> None:
        http = MockHttpClient()
        http.set_response("https://api.github.com/repos/a/t/contents/f", status=201, method="PUT")
        result = ContentClient(http).put("repos/a/t/contents/f", {"message": "m"})
        assert isinstance(result, Ok)
        assert result.value.status == 201
        req = http.requests[0]
        assert req.method == "PUT"
        assert req.headers["content-type"] == "application/json"
        assert json.loads(req.body or b"") == {"message": "m"}


class TestHelpers:
    def test_rate_limit(self) -> None:
        resp = HttpResponse(
            "u", 403, {"x-ratelimit-remaining": "0", "x-ratelimit-limit": "60"}, b""
        )
        assert rate_limit(resp) == "0/60"

    def test_rate_limit_absent(self) -> None:
        assert rate_limit(HttpResponse("u", 500, {}, b"")) is None

    def test_remote_error(self) -> None:
        err = remote_error(HttpError("https://api/x", 0, "timed out"))
        assert err.url == "https://api/x"
        assert err.status == 0
        assert err.message == "timed out"

    def test_decode_content_with_newlines(self) -> None:
        encoded = base64.b64encode(b'version "1.0.0"\n').decode("ascii")
        wrapped = encoded[:8] + "\n" + encoded[8:]
        assert decode_content({"content": wrapped}, "u") == Ok('version "1.0.0"\n')

    def test_decode_content_missing(self) -> None:
        result = decode_content({"sha": "abc"}, "u")
        assert isinstance(result, Err)
        assert result.error.message == "no content found"
