"""Workflow services: version resolution and the wrap run."""

from rustwrap.services.runner import RunReport, run_wrap
from rustwrap.services.version import latest_release_tag, resolve_version

__all__ = ["RunReport", "latest_release_tag", "resolve_version", "run_wrap"]
