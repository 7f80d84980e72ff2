"""Error taxonomy and exit codes.

Every failure in a wrap run is one of the frozen dataclasses below. They are
returned inside ``Err`` and never raised; the CLI turns them into a single
``error:`` line and an exit code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

__all__ = [
    "ErrorCode",
    "ConfigurationError",
    "InvalidVersion",
    "RemoteError",
    "DownloadFailed",
    "NoMatchingTarget",
    "PublishFailed",
    "IoError",
    "ToolNotFound",
    "WrapError",
    "error_exit_code",
]


class ErrorCode(IntEnum):
    """Exit codes for the CLI.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad config, bad version, no matching target)
    - 2: Environment error (a required tool such as npm cannot be started)
    - 3: Publish error (registry refused the package)
    - 4: Network error (download failed, API unreachable)
    - 5: I/O error (file not found, permission denied)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    PUBLISH_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """Missing or invalid configuration (including recipe placeholders)."""

    message: str
    path: Path | None = None

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message} ({self.path})"
        return self.message


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    """A version string that is not a semantic version."""

    value: str
    reason: str = "not a semantic version"

    def __str__(self) -> str:
        return f"invalid version '{self.value}': {self.reason}"


@dataclass(frozen=True, slots=True)
class RemoteError:
    """Non-success API response or a response missing an expected field.

    Attributes:
        url: The API URL
        status: HTTP status code (0 when no response was received)
        message: Human-readable error message
        rate_limit: "remaining/limit" from the rate-limit headers, if reported
    """

    url: str
    status: int
    message: str
    rate_limit: str | None = None

    def __str__(self) -> str:
        text = self.message
        if self.status:
            text = f"{text} (status {self.status})"
        text = f"{text} - for: {self.url}"
        if self.rate_limit:
            text = f"{text} (ratelimit: {self.rate_limit})"
        return text


@dataclass(frozen=True, slots=True)
class DownloadFailed:
    url: str
    status: int
    message: str = ""

    def __str__(self) -> str:
        if self.status:
            return f"downloading '{self.url}' failed with status: {self.status}"
        return f"downloading '{self.url}' failed: {self.message}"


@dataclass(frozen=True, slots=True)
class NoMatchingTarget:
    provider: str
    platform: str
    arch: str

    def __str__(self) -> str:
        return f"{self.provider}: no {self.platform}-{self.arch} compatible target found"


@dataclass(frozen=True, slots=True)
class PublishFailed:
    """The registry refused a package, or a newer version is already published."""

    package: str
    message: str
    returncode: int | None = None

    def __str__(self) -> str:
        if self.returncode is not None:
            return f"publishing {self.package} failed (exit {self.returncode}): {self.message}"
        return f"publishing {self.package} failed: {self.message}"


@dataclass(frozen=True, slots=True)
class IoError:
    path: Path | None
    message: str

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message}: {self.path}"
        return self.message


@dataclass(frozen=True, slots=True)
class ToolNotFound:
    """A command-line tool could not be started (not installed or not on PATH)."""

    tool: str
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return f"cannot run '{self.tool}': {self.message}"
        return f"cannot run '{self.tool}'"


WrapError = (
    ConfigurationError
    | InvalidVersion
    | RemoteError
    | DownloadFailed
    | NoMatchingTarget
    | PublishFailed
    | IoError
    | ToolNotFound
)


def error_exit_code(error: WrapError) -> ErrorCode:
    """Get the exit code for a wrap error."""
    match error:
        case ConfigurationError() | InvalidVersion() | NoMatchingTarget():
            return ErrorCode.USER_ERROR
        case RemoteError() | DownloadFailed():
            return ErrorCode.NETWORK_ERROR
        case PublishFailed():
            return ErrorCode.PUBLISH_ERROR
        case IoError():
            return ErrorCode.IO_ERROR
        case ToolNotFound():
            return ErrorCode.ENV_ERROR
