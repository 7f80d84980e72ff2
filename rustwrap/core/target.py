"""Release targets: one (platform, arch) artifact and its URL template.

Platform and arch values use the names Node.js reports in ``process.platform``
and ``process.arch`` so they can be written straight into npm manifests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

__all__ = [
    "VERSION_PLACEHOLDER",
    "Platform",
    "Arch",
    "Target",
]

VERSION_PLACEHOLDER = "__VERSION__"


class Platform(Enum):
    """Operating system platform."""

    UNKNOWN = "unknown"
    LINUX = "linux"
    WIN32 = "win32"
    DARWIN = "darwin"

    def __str__(self) -> str:
        return self.value

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self == Platform.WIN32 else ""


class Arch(Enum):
    """CPU architecture."""

    X64 = "x64"
    ARM64 = "arm64"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Target:
    """A single release artifact.

    Attributes:
        platform: Target operating system
        arch: Target CPU architecture
        url_template: Download URL containing ``__VERSION__``
        bin_name: Optional binary name (informational)
        archive: Local archive path; set once the artifact is fetched
    """

    platform: Platform = Platform.UNKNOWN
    arch: Arch = Arch.X64
    url_template: str = ""
    bin_name: str | None = None
    archive: Path | None = None

    def tuple_slug(self) -> str:
        """Stable cross-provider identifier, e.g. "linux-arm64"."""
        return f"{self.platform}-{self.arch}"

    def exe_name(self, name: str) -> str:
        """Binary file name on this target.

        Example: exe_name("recon") -> "recon.exe" on win32, "recon" elsewhere.
        """
        return f"{name}{self.platform.exe_suffix}"

    def url(self, version: str) -> str:
        return self.url_template.replace(VERSION_PLACEHOLDER, version)
