"""Run a wrap workflow: resolve version, fetch targets, publish per provider.

Stages run sequentially and the first error ends the run. Providers are
handled in config order (npm, then brew); a failing provider stops the
ones after it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rustwrap.artifacts.download import TargetsDownloader, releases_dir
from rustwrap.core.config import BrewOpts, NpmOpts
from rustwrap.core.errors import PublishFailed, ToolNotFound, WrapError
from rustwrap.core.result import Err, Ok, Result
from rustwrap.platform.process import run
from rustwrap.providers import brew, npm
from rustwrap.services.version import resolve_version

if TYPE_CHECKING:
    from rustwrap.core.config import Provider
    from rustwrap.core.session import Session
    from rustwrap.core.target import Target
    from rustwrap.core.version import SemVer
    from rustwrap.platform.process import CommandRunner
    from rustwrap.remote.content import ContentClient
    from rustwrap.remote.http import HttpClient

__all__ = ["RunReport", "check_published", "provider_name", "run_wrap"]


@dataclass(frozen=True, slots=True)
class RunReport:
    """What a successful run produced."""

    version: SemVer
    targets: tuple[Target, ...]
    outputs: dict[str, Path] = field(default_factory=dict)


def provider_name(provider: Provider) -> str:
    match provider:
        case NpmOpts():
            return "npm"
        case BrewOpts():
            return "brew"


def _published_version(
    provider: Provider,
    client: ContentClient,
    run_command: CommandRunner,
) -> Result[SemVer, WrapError]:
    match provider:
        case NpmOpts():
            return npm.latest(provider, run_command)
        case BrewOpts():
            return brew.latest(client, provider)


def check_published(
    session: Session,
    provider: Provider,
    version: SemVer,
    client: ContentClient,
    run_command: CommandRunner = run,
) -> Result[None, WrapError]:
    """Refuse to publish over a newer version already on the registry.

    Only consulted when the provider publishes. A lookup failure (first
    release, registry unreachable) is reported and does not block; a
    registry tool that cannot be started ends the run.
    """
    name = provider_name(provider)
    current = _published_version(provider, client, run_command)
    if isinstance(current, Err):
        if isinstance(current.error, ToolNotFound):
            return Err(current.error)
        session.console.warning(f"{name}: cannot determine published version ({current.error})")
        return Ok(None)

    published = current.value
    session.console.detail(f"{name}: published version is {published}")
    if published > version:
        return Err(
            PublishFailed(
                package=name,
                message=f"registry already has {published}, newer than {version}",
            )
        )
    return Ok(None)


def _publish_provider(
    session: Session,
    provider: Provider,
    out_dir: Path,
    version: str,
    targets: list[Target],
    client: ContentClient,
    run_command: CommandRunner,
) -> Result[Path, WrapError]:
    match provider:
        case NpmOpts():
            return npm.publish(
                session, out_dir, version, targets, provider, run_command=run_command
            )
        case BrewOpts():
            return brew.publish(session, out_dir, version, targets, provider, client)


def run_wrap(
    session: Session,
    *,
    out_dir: Path,
    tag: str | None,
    http: HttpClient,
    client: ContentClient,
    run_command: CommandRunner = run,
    show_progress: bool = True,
) -> Result[RunReport, WrapError]:
    """Run the whole pipeline.

    Args:
        session: Loaded config and console
        out_dir: Output root (archives go to <out>/releases)
        tag: Explicit version, or None to discover the latest release
        http: HTTP client for artifact downloads
        client: Remote content client (release discovery, tap upserts)
        run_command: Subprocess runner for the npm CLI
        show_progress: Show download progress bars

    Returns:
        Ok(RunReport) or the first error encountered
    """
    config = session.config

    resolved = resolve_version(tag, config.repo, client, session.console)
    if isinstance(resolved, Err):
        return resolved
    version = resolved.value
    version_str = str(version)

    downloader = TargetsDownloader(http, releases_dir(out_dir), show_progress=show_progress)
    fetched = downloader.download(session, version_str)
    if isinstance(fetched, Err):
        return fetched
    targets = fetched.value

    outputs: dict[str, Path] = {}
    for provider in config.providers():
        if provider.publish:
            gate = check_published(session, provider, version, client, run_command)
            if isinstance(gate, Err):
                return gate

        result = _publish_provider(
            session, provider, out_dir, version_str, targets, client, run_command
        )
        if isinstance(result, Err):
            return result
        outputs[provider_name(provider)] = result.value

    return Ok(RunReport(version=version, targets=tuple(targets), outputs=outputs))
