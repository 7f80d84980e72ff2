"""Error presentation utilities.

Centralized error formatting and hints for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rustwrap.core.errors import (
    ConfigurationError,
    InvalidVersion,
    NoMatchingTarget,
    PublishFailed,
    RemoteError,
    ToolNotFound,
    WrapError,
    error_exit_code,
)
from rustwrap.output.console import Style

if TYPE_CHECKING:
    from rustwrap.output.console import ConsoleProtocol

__all__ = ["error_hint", "print_wrap_error"]


def error_hint(error: WrapError) -> str | None:
    """Optional follow-up line suggesting a fix."""
    match error:
        case ConfigurationError(path=path) if path is not None:
            return f"check {path}"
        case InvalidVersion():
            return "--tag takes a plain version such as 1.2.3, without a leading 'v'"
        case RemoteError(status=401 | 403):
            return "set GITHUB_TOKEN to authenticate GitHub API calls"
        case NoMatchingTarget(platform=platform, arch=arch):
            return f"add a target with platform: {platform} and arch: {arch}"
        case PublishFailed(returncode=rc) if rc is not None:
            return "check `npm whoami` and the registry output above"
        case ToolNotFound(tool=tool):
            return f"install {tool} and make sure it is on PATH"
        case _:
            return None


def print_wrap_error(error: WrapError, console: ConsoleProtocol) -> int:
    """Print error (and hint) to console; return the exit code to use."""
    console.error(str(error))
    hint = error_hint(error)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)
    return int(error_exit_code(error))
