"""Core types: results, errors, config, targets, versions."""

from .config import BrewOpts, Config, NpmOpts, PackageInfo, load_config
from .errors import ErrorCode, WrapError
from .result import Err, Ok, Result, is_err, is_ok
from .session import Session
from .target import Arch, Platform, Target
from .version import SemVer, parse_tag, parse_version

__all__ = [
    "Arch",
    "BrewOpts",
    "Config",
    "Err",
    "ErrorCode",
    "NpmOpts",
    "Ok",
    "PackageInfo",
    "Platform",
    "Result",
    "SemVer",
    "Session",
    "Target",
    "WrapError",
    "is_err",
    "is_ok",
    "load_config",
    "parse_tag",
    "parse_version",
]
