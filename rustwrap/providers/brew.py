"""Homebrew provider: render a formula and upsert it into a tap repository.

Formulae are single-artifact: the darwin/x64 target's archive is hashed
and its download URL embedded in the recipe template.
"""

from __future__ import annotations

import base64
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rustwrap.artifacts.download import resolve_archive
from rustwrap.core.errors import IoError, NoMatchingTarget, RemoteError, WrapError
from rustwrap.core.result import Err, Ok, Result
from rustwrap.core.target import Arch, Platform
from rustwrap.core.version import SemVer, parse_version
from rustwrap.platform.files import atomic_write_text, sha256_file
from rustwrap.remote.content import decode_content, remote_error

if TYPE_CHECKING:
    from rustwrap.core.config import BrewOpts
    from rustwrap.core.session import Session
    from rustwrap.core.target import Target
    from rustwrap.remote.content import ContentClient

__all__ = [
    "RecipeFields",
    "brew_out_dir",
    "find_target",
    "latest",
    "parse_recipe",
    "publish",
    "remote_sha",
    "upsert_recipe",
]

_URL_RE = re.compile(r'^\s*url\s+"([^"]*)"', re.MULTILINE)
_SHA_RE = re.compile(r'^\s*sha256\s+"([^"]*)"', re.MULTILINE)
_VERSION_RE = re.compile(r'^\s*version\s+"([^"]*)"', re.MULTILINE)


@dataclass(frozen=True, slots=True)
class RecipeFields:
    """The values substituted into a rendered recipe."""

    url: str
    sha256: str
    version: str


def parse_recipe(recipe: str) -> RecipeFields | None:
    """Read back url/sha256/version from a rendered formula."""
    url = _URL_RE.search(recipe)
    sha = _SHA_RE.search(recipe)
    version = _VERSION_RE.search(recipe)
    if url is None or sha is None or version is None:
        return None
    return RecipeFields(url=url.group(1), sha256=sha.group(1), version=version.group(1))


def brew_out_dir(out_dir: Path, version: str, opts: BrewOpts) -> Path:
    return out_dir / f"{opts.name}-{version}" / "brew"


def find_target(targets: Sequence[Target]) -> Result[Target, NoMatchingTarget]:
    """The Intel macOS target the formula is built from."""
    for target in targets:
        if target.arch == Arch.X64 and target.platform == Platform.DARWIN:
            return Ok(target)
    return Err(NoMatchingTarget(provider="brew", platform="darwin", arch="x64"))


def remote_sha(client: ContentClient, opts: BrewOpts) -> Result[str | None, RemoteError]:
    """Blob sha of the recipe currently in the tap, or None if it does not exist."""
    path = client.contents_path(opts.tap, opts.recipe_file)
    result = client.get(path)
    if isinstance(result, Err):
        return Err(remote_error(result.error))

    resp = result.value
    if resp.status != 200:
        return Ok(None)
    parsed = resp.json()
    if isinstance(parsed, Err):
        return Ok(None)
    sha = parsed.value.get("sha")
    if not isinstance(sha, str):
        return Err(
            RemoteError(url=client.url(path), status=resp.status, message="no `sha` in response")
        )
    return Ok(sha)


def upsert_recipe(
    client: ContentClient,
    opts: BrewOpts,
    recipe: str,
    session: Session,
) -> Result[None, RemoteError]:
    """Create or update the recipe in the tap.

    The current blob sha is sent along when the file exists; the API
    refuses the update without it.
    """
    sha = remote_sha(client, opts)
    if isinstance(sha, Err):
        return sha

    fname = opts.recipe_file
    payload: dict[str, object] = {
        "message": f"rustwrap update: {fname}",
        "content": base64.b64encode(recipe.encode("utf-8")).decode("ascii"),
    }
    if sha.value is not None:
        payload["sha"] = sha.value

    path = client.contents_path(opts.tap, fname)
    result = client.put(path, payload)
    if isinstance(result, Err):
        return Err(remote_error(result.error))

    resp = result.value
    session.console.detail(f"brew: put response: {resp.status}")
    if not resp.ok:
        session.console.detail(f"brew: response body: {resp.text()}")
        return Err(
            RemoteError(url=client.url(path), status=resp.status, message="brew publishing failed")
        )
    return Ok(None)


def latest(client: ContentClient, opts: BrewOpts) -> Result[SemVer, WrapError]:
    """Version of the recipe currently in the tap."""
    path = client.contents_path(opts.tap, opts.recipe_file)
    url = client.url(path)
    result = client.get(path)
    if isinstance(result, Err):
        return Err(remote_error(result.error))

    resp = result.value
    if not resp.ok:
        return Err(RemoteError(url=url, status=resp.status, message="no recipe found"))
    parsed = resp.json()
    if isinstance(parsed, Err):
        return Err(remote_error(parsed.error))

    content = decode_content(parsed.value, url)
    if isinstance(content, Err):
        return content

    m = _VERSION_RE.search(content.value)
    if m is None:
        return Err(RemoteError(url=url, status=resp.status, message="cannot find version"))
    return parse_version(m.group(1))


def publish(
    session: Session,
    out_dir: Path,
    version: str,
    targets: Sequence[Target],
    opts: BrewOpts,
    client: ContentClient,
) -> Result[Path, WrapError]:
    """Render the recipe, upsert it when ``opts.publish`` is set, save it locally.

    The local copy is written after a successful upsert (or straight away
    when publishing is disabled); a failed upsert leaves no local recipe.

    Returns:
        Ok with the path of the saved recipe
    """
    brew_dir = brew_out_dir(out_dir, version, opts)
    session.console.header(f"brew: generating into {brew_dir}")

    valid = opts.validate()
    if isinstance(valid, Err):
        return valid

    found = find_target(targets)
    if isinstance(found, Err):
        return found
    target = found.value

    archive = resolve_archive(out_dir, target)
    if archive is None:
        return Err(
            IoError(path=None, message=f"archive for {target.tuple_slug()} was not fetched")
        )

    try:
        sha = sha256_file(archive)
    except OSError as e:
        return Err(IoError(path=archive, message=f"cannot hash archive ({e})"))

    recipe = opts.recipe(version, target.url(version), sha)
    session.console.detail(f"brew: rendered recipe\n{recipe}")

    if opts.publish:
        pushed = upsert_recipe(client, opts, recipe, session)
        if isinstance(pushed, Err):
            return pushed
        session.console.print(f"   published '{opts.recipe_file}' in '{opts.tap}'")

    dest = brew_dir / opts.recipe_file
    try:
        atomic_write_text(dest, recipe)
    except OSError as e:
        return Err(IoError(path=dest, message=f"cannot save recipe ({e})"))

    session.console.success(f"brew: saved recipe to '{dest}'")
    return Ok(dest)
