"""Tests for rustwrap.services.version module."""

from __future__ import annotations

from rustwrap.core.errors import ConfigurationError, InvalidVersion, RemoteError
from rustwrap.core.result import Err, Ok
from rustwrap.core.version import SemVer
from rustwrap.output.console import MockConsole
from rustwrap.remote.content import ContentClient
from rustwrap.remote.http import HttpError, MockHttpClient
from rustwrap.services.version import latest_release_tag, resolve_version

REPO = "recontools/recon"
RELEASE_URL = f"https://api.github.com/repos/{REPO}/releases/latest"


class TestLatestReleaseTag:
    def test_reads_tag_name(self) -> None:
        http = MockHttpClient()
        http.set_json(RELEASE_URL, {"tag_name": "v2.3.4", "name": "Release 2.3.4"})
        assert latest_release_tag(ContentClient(http), REPO) == Ok("v2.3.4")

    def test_error_status_with_rate_limit(self) -> None:
        http = MockHttpClient()
        http.set_json(
            RELEASE_URL,
            {"message": "API rate limit exceeded"},
            status=403,
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Limit": "60"},
        )
        result = latest_release_tag(ContentClient(http), REPO)
        assert result == Err(
            RemoteError(
                url=RELEASE_URL, status=403, message="api request failed", rate_limit="0/60"
            )
        )

    def test_missing_tag_name(self) -> None:
        http = MockHttpClient()
        http.set_json(RELEASE_URL, {"name": "untagged"})
        result = latest_release_tag(ContentClient(http), REPO)
        assert isinstance(result, Err)
        assert result.error.message == "release missing `tag_name`"

    def test_transport_error(self) -> None:
        http = MockHttpClient()
        http.set_error(RELEASE_URL, HttpError(RELEASE_URL, 0, "name resolution failed"))
        result = latest_release_tag(ContentClient(http), REPO)
        assert isinstance(result, Err)
        assert result.error.status == 0


class TestResolveVersion:
    """Test explicit and discovered versions."""

    def test_explicit_wins(self) -> None:
        http = MockHttpClient()
        result = resolve_version("1.0.1", REPO, ContentClient(http), MockConsole())
        assert result == Ok(SemVer(1, 0, 1))
        assert http.calls == []

    def test_explicit_invalid(self) -> None:
        result = resolve_version("1.0", REPO, ContentClient(MockHttpClient()), MockConsole())
        assert result == Err(InvalidVersion(value="1.0"))

    def test_discovers_and_strips_v(self) -> None:
        http = MockHttpClient()
        http.set_json(RELEASE_URL, {"tag_name": "v2.3.4"})
        console = MockConsole()
        result = resolve_version(None, REPO, ContentClient(http), console)
        assert result == Ok(SemVer(2, 3, 4))
        assert console.find("2.3.4")

    def test_malformed_tag(self) -> None:
        http = MockHttpClient()
        http.set_json(RELEASE_URL, {"tag_name": "nightly"})
        result = resolve_version(None, REPO, ContentClient(http), MockConsole())
        assert result == Err(InvalidVersion(value="nightly"))

    def test_no_repo(self) -> None:
        http = MockHttpClient()
        result = resolve_version(None, None, ContentClient(http), MockConsole())
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigurationError)
        assert http.calls == []

    def test_non_success_status(self) -> None:
        result = resolve_version(None, REPO, ContentClient(MockHttpClient()), MockConsole())
        assert isinstance(result, Err)
        assert isinstance(result.error, RemoteError)
        assert result.error.status == 404
