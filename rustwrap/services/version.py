"""Version Resolver: decide which version a run packages.

An explicit ``--tag`` wins; otherwise the latest release tag of the
configured repository is discovered through the releases API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rustwrap.core.errors import ConfigurationError, RemoteError, WrapError
from rustwrap.core.result import Err, Ok, Result
from rustwrap.core.version import SemVer, parse_tag, parse_version
from rustwrap.remote.content import rate_limit, remote_error

if TYPE_CHECKING:
    from rustwrap.output.console import ConsoleProtocol
    from rustwrap.remote.content import ContentClient

__all__ = ["latest_release_tag", "resolve_version"]


def latest_release_tag(client: ContentClient, repo: str) -> Result[str, RemoteError]:
    """Fetch the tag name of the latest release of repo ("owner/name")."""
    url = client.url(client.release_path(repo))
    result = client.get(client.release_path(repo))
    if isinstance(result, Err):
        return Err(remote_error(result.error))

    resp = result.value
    if not resp.ok:
        return Err(
            RemoteError(
                url=url,
                status=resp.status,
                message="api request failed",
                rate_limit=rate_limit(resp),
            )
        )

    parsed = resp.json()
    if isinstance(parsed, Err):
        return Err(remote_error(parsed.error))

    tag = parsed.value.get("tag_name")
    if not isinstance(tag, str) or not tag:
        return Err(RemoteError(url=url, status=resp.status, message="release missing `tag_name`"))
    return Ok(tag)


def resolve_version(
    explicit: str | None,
    repo: str | None,
    client: ContentClient,
    console: ConsoleProtocol,
) -> Result[SemVer, WrapError]:
    """Return the version to package.

    Args:
        explicit: Version given on the command line, if any (strict semver)
        repo: Repository used for discovery when no explicit version is given
        client: Remote content client for the releases API
        console: Where the discovered version is announced

    Returns:
        Ok(SemVer), or Err with InvalidVersion / ConfigurationError / RemoteError
    """
    if explicit is not None:
        return parse_version(explicit)

    if not repo:
        return Err(
            ConfigurationError(
                "no version tag given and no `repo` configured to discover one; "
                "supply one with `--tag`"
            )
        )

    tag = latest_release_tag(client, repo)
    if isinstance(tag, Err):
        return tag

    version = parse_tag(tag.value)
    if isinstance(version, Ok):
        console.info(f"latest release of {repo}: {version.value}")
    return version
