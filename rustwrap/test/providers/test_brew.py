"""Tests for rustwrap.providers.brew module."""

from __future__ import annotations

import base64
import hashlib
import json
from pathlib import Path

from rustwrap.core.config import BrewOpts, Config
from rustwrap.core.errors import ConfigurationError, IoError, NoMatchingTarget, RemoteError
from rustwrap.core.result import Err, Ok
from rustwrap.core.session import Session
from rustwrap.core.target import Arch, Platform, Target
from rustwrap.output.console import MockConsole
from rustwrap.providers import brew
from rustwrap.remote.content import ContentClient
from rustwrap.remote.http import HttpError, MockHttpClient

VERSION = "1.0.1"
TAP = "recontools/homebrew-tap"
CONTENTS_URL = f"https://api.github.com/repos/{TAP}/contents/recon.rb"
TEMPLATE = """\
class Recon < Formula
  desc "recon cli"
  url "__URL__"
  version "__VERSION__"
  sha256 "__SHA__"
end
"""


def _opts(*, publish: bool = False, template: str = TEMPLATE) -> BrewOpts:
    return BrewOpts(name="recon", tap=TAP, recipe_template=template, publish=publish)


def _session() -> Session:
    return Session(config=Config(), console=MockConsole())


def _mac_target(tmp_path: Path, data: bytes = b"intel-mac") -> Target:
    archive = tmp_path / "dist" / "releases" / "recon-mac.tar.gz"
    archive.parent.mkdir(parents=True, exist_ok=True)
    archive.write_bytes(data)
    return Target(
        platform=Platform.DARWIN,
        arch=Arch.X64,
        url_template="https://example.com/v__VERSION__/recon-x86_64-apple-darwin.tar.gz",
        archive=archive,
    )


def _recipe_json(version: str, sha: str = "blob-sha") -> dict[str, object]:
    content = TEMPLATE.replace("__VERSION__", version)
    return {"content": base64.b64encode(content.encode()).decode(), "sha": sha}


class TestParseRecipe:
    def test_round_trip(self) -> None:
        rendered = _opts().recipe(VERSION, "https://x/recon.tgz", "deadbeef")
        assert brew.parse_recipe(rendered) == brew.RecipeFields(
            url="https://x/recon.tgz", sha256="deadbeef", version=VERSION
        )

    def test_incomplete(self) -> None:
        assert brew.parse_recipe('url "x"\n') is None


class TestFindTarget:
    def test_picks_intel_mac(self, tmp_path: Path) -> None:
        mac = _mac_target(tmp_path)
        arm = Target(platform=Platform.DARWIN, arch=Arch.ARM64)
        assert brew.find_target([arm, mac]) == Ok(mac)

    def test_none_found(self) -> None:
        result = brew.find_target([Target(platform=Platform.LINUX, arch=Arch.X64)])
        assert result == Err(NoMatchingTarget(provider="brew", platform="darwin", arch="x64"))


class TestPublishLocal:
    """Test recipe generation without publishing."""

    def test_renders_and_saves(self, tmp_path: Path) -> None:
        target = _mac_target(tmp_path, b"intel-mac")
        http = MockHttpClient()
        out = tmp_path / "dist"

        result = brew.publish(_session(), out, VERSION, [target], _opts(), ContentClient(http))

        dest = out / "recon-1.0.1" / "brew" / "recon.rb"
        assert result == Ok(dest)
        fields = brew.parse_recipe(dest.read_text(encoding="utf-8"))
        assert fields == brew.RecipeFields(
            url="https://example.com/v1.0.1/recon-x86_64-apple-darwin.tar.gz",
            sha256=hashlib.sha256(b"intel-mac").hexdigest(),
            version=VERSION,
        )
        assert http.calls == []

    def test_invalid_template(self, tmp_path: Path) -> None:
        target = _mac_target(tmp_path)
        opts = _opts(template=TEMPLATE.replace("__SHA__", "fixed"))
        result = brew.publish(
            _session(), tmp_path / "dist", VERSION, [target], opts, ContentClient(MockHttpClient())
        )
        assert result == Err(ConfigurationError("brew recipe template: missing SHA variable"))

    def test_no_matching_target(self, tmp_path: Path) -> None:
        result = brew.publish(
            _session(), tmp_path / "dist", VERSION, [], _opts(), ContentClient(MockHttpClient())
        )
        assert isinstance(result, Err)
        assert isinstance(result.error, NoMatchingTarget)

    def test_unfetched_target(self, tmp_path: Path) -> None:
        target = Target(platform=Platform.DARWIN, arch=Arch.X64, url_template="u/__VERSION__")
        client = ContentClient(MockHttpClient())
        result = brew.publish(_session(), tmp_path / "dist", VERSION, [target], _opts(), client)
        assert isinstance(result, Err)
        assert isinstance(result.error, IoError)


class TestUpsert:
    """Test publishing the recipe to the tap."""

    def test_creates_new_file_without_sha(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_response(CONTENTS_URL, b"{}", status=201, method="PUT")
        target = _mac_target(tmp_path)

        result = brew.publish(
            _session(),
            tmp_path / "dist",
            VERSION,
            [target],
            _opts(publish=True),
            ContentClient(http, token="t0k"),
        )

        assert isinstance(result, Ok)
        assert http.calls == [("GET", CONTENTS_URL), ("PUT", CONTENTS_URL)]
        put = http.requests[1]
        assert put.headers["authorization"] == "token t0k"
        payload = json.loads(put.body or b"")
        assert payload["message"] == "rustwrap update: recon.rb"
        assert "sha" not in payload
        recipe = base64.b64decode(payload["content"]).decode()
        assert recipe == result.value.read_text(encoding="utf-8")

    def test_updates_existing_file_with_sha(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_json(CONTENTS_URL, _recipe_json("1.0.0", sha="abc123"))
        http.set_response(CONTENTS_URL, b"{}", status=200, method="PUT")

        result = brew.upsert_recipe(ContentClient(http), _opts(publish=True), "recipe", _session())

        assert result == Ok(None)
        payload = json.loads(http.requests[1].body or b"")
        assert payload["sha"] == "abc123"
        assert base64.b64decode(payload["content"]) == b"recipe"

    def test_rejected_put(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        http.set_response(CONTENTS_URL, b'{"message": "Bad credentials"}', status=401, method="PUT")
        session = _session()
        target = _mac_target(tmp_path)
        out = tmp_path / "dist"

        result = brew.publish(
            session, out, VERSION, [target], _opts(publish=True), ContentClient(http)
        )

        assert isinstance(result, Err)
        assert result.error == RemoteError(
            url=CONTENTS_URL, status=401, message="brew publishing failed"
        )
        assert not (out / "recon-1.0.1" / "brew" / "recon.rb").exists()
        assert session.console.find("Bad credentials")  # type: ignore[attr-defined]

    def test_transport_error(self) -> None:
        http = MockHttpClient()
        http.set_error(CONTENTS_URL, HttpError(CONTENTS_URL, 0, "connection reset"))
        result = brew.upsert_recipe(ContentClient(http), _opts(), "recipe", _session())
        assert isinstance(result, Err)
        assert result.error.message == "connection reset"


class TestLatest:
    def test_reads_version(self) -> None:
        http = MockHttpClient()
        http.set_json(CONTENTS_URL, _recipe_json("0.9.2"))
        result = brew.latest(ContentClient(http), _opts())
        assert isinstance(result, Ok)
        assert str(result.value) == "0.9.2"

    def test_missing_recipe(self) -> None:
        result = brew.latest(ContentClient(MockHttpClient()), _opts())
        assert isinstance(result, Err)
        assert isinstance(result.error, RemoteError)
        assert result.error.status == 404
