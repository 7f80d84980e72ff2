"""Platform abstraction layer."""

from .files import atomic_write_text, make_executable, sha256_file, write_json
from .process import CommandRunner, ProcessError, npm_executable, run

__all__ = [
    # files
    "atomic_write_text",
    "make_executable",
    "sha256_file",
    "write_json",
    # process
    "CommandRunner",
    "ProcessError",
    "npm_executable",
    "run",
]
