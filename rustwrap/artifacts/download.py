"""Artifact Fetcher: materialize every target's release archive on disk.

Targets are fetched one after the other, in config order. A target whose
``archive`` already exists under the releases directory is returned as-is
without touching the network, which makes re-runs cheap and lets users
drop hand-built archives in place.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import replace
from http.client import HTTPException
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol

from rustwrap.core.errors import DownloadFailed, IoError, WrapError
from rustwrap.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from rustwrap.core.session import Session
    from rustwrap.core.target import Target
    from rustwrap.output.console import ConsoleProtocol
    from rustwrap.remote.http import HttpClient

__all__ = [
    "DEFAULT_FILENAME",
    "RELEASES_DIR",
    "TargetsDownloader",
    "copy_with_progress",
    "download_to",
    "filename_from_content_disposition",
    "releases_dir",
    "resolve_archive",
]

RELEASES_DIR = "releases"
DEFAULT_FILENAME = "temp.bin"
CHUNK_SIZE = 16384

_FILENAME_RE = re.compile(r'filename="?([^";]*)"?')


class _Reader(Protocol):
    def read(self, size: int = -1) -> bytes: ...


def releases_dir(out_dir: Path) -> Path:
    """Where downloaded archives live: <out>/releases."""
    return out_dir / RELEASES_DIR


def resolve_archive(out_dir: Path, target: Target) -> Path | None:
    """Local archive of a fetched target (relative archives live in <out>/releases)."""
    if target.archive is None:
        return None
    return releases_dir(out_dir) / target.archive


def filename_from_content_disposition(value: str | None) -> str | None:
    """Extract the filename from a Content-Disposition header value.

    Example: 'attachment; filename="recon-x86_64.tar.xz"' -> "recon-x86_64.tar.xz"

    Only the final path component is kept so a hostile header cannot
    write outside the releases directory.
    """
    if not value:
        return None
    m = _FILENAME_RE.search(value)
    if m is None:
        return None
    name = m.group(1).strip().replace("\\", "/").rsplit("/", 1)[-1]
    if name in {"", ".", ".."}:
        return None
    return name


def copy_with_progress(
    reader: _Reader,
    writer: BinaryIO,
    on_chunk: Callable[[int], None] | None = None,
    *,
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """Copy reader to writer chunk by chunk; return bytes written.

    An interrupted read is retried on the same stream. Any other OSError
    propagates immediately, leaving whatever was already written in place.
    """
    written = 0
    while True:
        try:
            chunk = reader.read(chunk_size)
        except InterruptedError:
            continue
        if not chunk:
            return written
        writer.write(chunk)
        written += len(chunk)
        if on_chunk is not None:
            on_chunk(len(chunk))


def download_to(
    http: HttpClient,
    url: str,
    out_dir: Path,
    console: ConsoleProtocol,
    *,
    headers: Mapping[str, str] | None = None,
    show_progress: bool = True,
) -> Result[Path, WrapError]:
    """GET url and stream the body into out_dir.

    The file name comes from Content-Disposition, falling back to temp.bin.
    Progress is shown only when the server declares a Content-Length.

    Returns:
        Ok with the absolute path of the written file
    """
    opened = http.open(url, headers=headers)
    if isinstance(opened, Err):
        return Err(DownloadFailed(url=url, status=0, message=opened.error.message))

    with opened.value as resp:
        if not resp.ok:
            return Err(DownloadFailed(url=url, status=resp.status))

        size = resp.content_length
        file_name = (
            filename_from_content_disposition(resp.header("Content-Disposition"))
            or DEFAULT_FILENAME
        )
        out_file = (out_dir / file_name).resolve()
        console.detail(f"   {url} -> {out_file} ({size or 'unknown'} bytes)")

        try:
            out_dir.mkdir(parents=True, exist_ok=True)
            with open(out_file, "wb") as dest:
                if show_progress and size > 0:
                    with console.progress(file_name, size) as task:
                        copy_with_progress(resp, dest, task.advance)
                else:
                    copy_with_progress(resp, dest)
        except (OSError, HTTPException) as e:
            return Err(IoError(path=out_file, message=f"download of {url} interrupted ({e})"))

    return Ok(out_file)


class TargetsDownloader:
    """Fetch the archives for a list of targets.

    Usage:
        downloader = TargetsDownloader(http, releases_dir(out))
        result = downloader.download(session, "1.0.1")
        if is_ok(result):
            targets = result.value  # same order, each with .archive set
    """

    def __init__(
        self,
        http: HttpClient,
        out_dir: Path,
        *,
        show_progress: bool = True,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._http = http
        self._out_dir = out_dir
        self._show_progress = show_progress
        self._headers = dict(headers) if headers else None

    def is_present(self, target: Target) -> bool:
        """True if the target already points at an archive on disk."""
        if target.archive is None:
            return False
        return (self._out_dir / target.archive).exists()

    def fetch(
        self,
        target: Target,
        version: str,
        console: ConsoleProtocol,
    ) -> Result[Target, WrapError]:
        if self.is_present(target):
            console.detail(f"   {target.tuple_slug()}: using existing {target.archive}")
            return Ok(target)

        result = download_to(
            self._http,
            target.url(version),
            self._out_dir,
            console,
            headers=self._headers,
            show_progress=self._show_progress,
        )
        if isinstance(result, Err):
            return result
        return Ok(replace(target, archive=result.value))

    def download(self, session: Session, version: str) -> Result[list[Target], WrapError]:
        """Fetch all configured targets, stopping at the first failure."""
        return self.download_targets(session.config.targets, session.console, version)

    def download_targets(
        self,
        targets: tuple[Target, ...] | list[Target],
        console: ConsoleProtocol,
        version: str,
    ) -> Result[list[Target], WrapError]:
        console.print(f"downloading {len(targets)} target release(s) into {self._out_dir}")
        fetched: list[Target] = []
        owners: dict[Path, str] = {}
        for target in targets:
            result = self.fetch(target, version, console)
            if isinstance(result, Err):
                return result
            done = result.value
            if done.archive is not None:
                path = (self._out_dir / done.archive).resolve()
                previous = owners.get(path)
                if previous is not None:
                    console.warning(
                        f"{done.tuple_slug()}: archive {path.name} is also used by {previous}; "
                        f"{previous} now points at the same file"
                    )
                owners[path] = done.tuple_slug()
            fetched.append(done)
        return Ok(fetched)
