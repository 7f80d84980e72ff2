from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rustwrap.core.config import Config
    from rustwrap.output.console import ConsoleProtocol

__all__ = ["Session"]


@dataclass(frozen=True, slots=True)
class Session:
    """Per-run context: the loaded config and the output sink."""

    config: Config
    console: ConsoleProtocol
