"""Archive extraction into npm sub-package directories.

Supports any tar flavour Python can open (gz, xz, bz2, plain) and zip.
The format is detected from the file contents, not the name, since
downloads without a Content-Disposition filename are saved as temp.bin.
Extraction merges into the destination (the manifest written there first
is kept) and strips leading path components.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

from rustwrap.core.errors import IoError
from rustwrap.core.result import Err, Ok, Result

__all__ = ["extract_archive"]


def _safe_relative_path(member_name: str, strip_components: int) -> Path | None:
    """Return a sanitized relative extraction path, or None if unsafe."""
    normalized = member_name.replace("\\", "/")
    if normalized.startswith("/"):
        return None

    parts = PurePosixPath(normalized).parts
    if len(parts) <= strip_components:
        return None

    kept = parts[strip_components:]
    if any(part in {"", ".", ".."} for part in kept):
        return None
    if kept[0].endswith(":"):
        return None

    return Path(*kept)


def _is_within_root(root: Path, target: Path) -> bool:
    try:
        return target.resolve().is_relative_to(root)
    except OSError:
        return False


def _extract_tar(archive: Path, dest: Path, strip_components: int) -> int:
    root = dest.resolve()
    count = 0
    with tarfile.open(archive, "r:*") as tar:
        for member in tar.getmembers():
            # Skip directories and non-regular entries (symlink, hardlink, device, fifo)
            if not member.isreg():
                continue

            rel_path = _safe_relative_path(member.name, strip_components)
            if rel_path is None:
                continue

            full_path = dest / rel_path
            if not _is_within_root(root, full_path):
                continue

            src = tar.extractfile(member)
            if src is None:
                continue

            full_path.parent.mkdir(parents=True, exist_ok=True)
            with src, open(full_path, "wb") as dst:
                shutil.copyfileobj(src, dst)

            mode = member.mode & 0o777
            if mode:
                with contextlib.suppress(OSError):
                    os.chmod(full_path, mode)
            count += 1
    return count


def _extract_zip(archive: Path, dest: Path, strip_components: int) -> int:
    root = dest.resolve()
    count = 0
    with zipfile.ZipFile(archive, "r") as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue

            rel_path = _safe_relative_path(info.filename, strip_components)
            if rel_path is None:
                continue

            unix_attrs = info.external_attr >> 16
            if (unix_attrs & 0o170000) == stat.S_IFLNK:
                continue

            full_path = dest / rel_path
            if not _is_within_root(root, full_path):
                continue

            full_path.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(full_path, "wb") as dst:
                shutil.copyfileobj(src, dst)

            # Preserve Unix permissions if available
            if unix_attrs & 0o777:
                full_path.chmod(unix_attrs & 0o777)
            count += 1
    return count


def extract_archive(
    archive: Path,
    dest: Path,
    *,
    strip_components: int = 1,
) -> Result[int, IoError]:
    """Extract archive into dest.

    Args:
        archive: Path to a tar or zip archive
        dest: Directory to extract into (created if missing, never wiped)
        strip_components: Number of leading path components to remove

    Returns:
        Ok with the number of files written, or Err with IoError
    """
    if not archive.is_file():
        return Err(IoError(path=archive, message="archive not found"))

    try:
        dest.mkdir(parents=True, exist_ok=True)
        if zipfile.is_zipfile(archive):
            return Ok(_extract_zip(archive, dest, strip_components))
        if tarfile.is_tarfile(archive):
            return Ok(_extract_tar(archive, dest, strip_components))
    except zipfile.BadZipFile as e:
        return Err(IoError(path=archive, message=f"invalid zip file ({e})"))
    except tarfile.TarError as e:
        return Err(IoError(path=archive, message=f"tar extraction failed ({e})"))
    except OSError as e:
        return Err(IoError(path=archive, message=f"extraction failed ({e})"))

    return Err(IoError(path=archive, message="unsupported archive format"))
