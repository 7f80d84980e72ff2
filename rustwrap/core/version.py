from __future__ import annotations

import re
from dataclasses import dataclass

from rustwrap.core.errors import InvalidVersion
from rustwrap.core.result import Err, Ok, Result

__all__ = ["SemVer", "parse_version", "parse_tag"]


_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text = f"{text}-{'.'.join(self.prerelease)}"
        if self.build:
            text = f"{text}+{self.build}"
        return text

    def _precedence(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # A release sorts after any of its pre-releases; numeric identifiers sort
        # before alphanumeric ones. Build metadata is ignored.
        ids = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part) for part in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, ids)

    def __lt__(self, other: SemVer) -> bool:
        return self._precedence() < other._precedence()

    def __le__(self, other: SemVer) -> bool:
        return self._precedence() <= other._precedence()

    def __gt__(self, other: SemVer) -> bool:
        return self._precedence() > other._precedence()

    def __ge__(self, other: SemVer) -> bool:
        return self._precedence() >= other._precedence()


def parse_version(text: str) -> Result[SemVer, InvalidVersion]:
    """Parse a strict semantic version ("1.2.3", "1.2.3-beta.1+build.5")."""
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        return Err(InvalidVersion(value=text))
    prerelease = tuple(m.group(4).split(".")) if m.group(4) else ()
    return Ok(
        SemVer(
            major=int(m.group(1)),
            minor=int(m.group(2)),
            patch=int(m.group(3)),
            prerelease=prerelease,
            build=m.group(5) or "",
        )
    )


def parse_tag(tag: str) -> Result[SemVer, InvalidVersion]:
    """Parse a release tag, accepting a leading "v" ("v2.3.4" -> 2.3.4)."""
    stripped = tag.strip()
    if stripped.startswith("v"):
        stripped = stripped[1:]
    result = parse_version(stripped)
    if isinstance(result, Err):
        return Err(InvalidVersion(value=tag))
    return result
