"""Subprocess execution with Result-based error handling.

Wraps subprocess.run for registry CLI calls (``npm publish``, ``npm view``):
output is captured and failures come back as structured errors.

Usage:
    result = run(["npm", "publish"], cwd=package_dir)
    match result:
        case Ok(stdout):
            console.print(stdout)
        case Err(error):
            console.error(error.stderr)
"""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rustwrap.core.result import Err, Ok, Result

__all__ = ["CommandRunner", "ProcessError", "npm_executable", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it did not start or timed out).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
        started: False when the executable could not be launched at all.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    started: bool = True

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


class CommandRunner(Protocol):
    def __call__(self, cmd: list[str], cwd: Path) -> Result[str, ProcessError]: ...


def npm_executable() -> str:
    return "npm.cmd" if sys.platform == "win32" else "npm"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
                started=False,
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
