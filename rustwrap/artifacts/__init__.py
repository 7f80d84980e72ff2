"""Release artifact acquisition and extraction."""

from rustwrap.artifacts.download import TargetsDownloader, releases_dir, resolve_archive
from rustwrap.artifacts.extract import extract_archive

__all__ = ["TargetsDownloader", "extract_archive", "releases_dir", "resolve_archive"]
