"""Console output abstraction.

This module provides a protocol for console output that can be implemented
by different backends (Rich for the terminal, an in-memory buffer for tests).
Services write progress notices through it without depending on Rich.
"""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = [
    "Style",
    "ProgressTask",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()  # Green, positive message
    ERROR = auto()  # Red, error message
    WARNING = auto()  # Yellow, warning message
    INFO = auto()  # Cyan, informational
    DIM = auto()  # Dimmed/muted text
    HEADER = auto()  # Section header

    def __str__(self) -> str:
        return self.name.lower()


class ProgressTask(Protocol):
    def advance(self, amount: int) -> None: ...


class ConsoleProtocol(Protocol):
    """Protocol for console output.

    Implementations can use Rich or capture output for testing.
    """

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling."""
        ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def detail(self, message: str) -> None:
        """Print a diagnostic message, shown only in verbose mode."""
        ...

    def progress(self, label: str, total: int) -> AbstractContextManager[ProgressTask]:
        """Track a byte transfer of known size.

        Args:
            label: Text shown next to the bar (typically a file name)
            total: Expected number of bytes
        """
        ...


class _RichTask:
    def __init__(self, progress: object, task_id: object) -> None:
        self._progress = progress
        self._task_id = task_id

    def advance(self, amount: int) -> None:
        self._progress.advance(self._task_id, amount)  # type: ignore[attr-defined]


class RichConsole:
    """Console implementation using Rich library."""

    def __init__(self, *, verbose: bool = False) -> None:
        # Import Rich lazily to avoid import-time dependency
        from rich.console import Console

        self._console = Console(stderr=True)
        self.verbose = verbose
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, highlight=False)
        else:
            self._console.print(message, highlight=False)

    def success(self, message: str) -> None:
        self._console.print(f"[green]OK[/green] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {message}")

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{message}[/blue bold]")

    def detail(self, message: str) -> None:
        if self.verbose:
            self._console.print(message, style="dim", markup=False, highlight=False)

    @contextmanager
    def progress(self, label: str, total: int) -> Iterator[ProgressTask]:
        from rich.progress import (
            BarColumn,
            DownloadColumn,
            Progress,
            TextColumn,
            TransferSpeedColumn,
        )

        columns = (
            TextColumn("   ->"),
            BarColumn(complete_style="green", finished_style="green"),
            DownloadColumn(),
            TransferSpeedColumn(),
            TextColumn("[dim]{task.description}"),
        )
        with Progress(*columns, console=self._console) as bar:
            task_id = bar.add_task(label, total=total)
            yield _RichTask(bar, task_id)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


@dataclass
class ProgressRecord:
    """A progress bar opened on MockConsole and the bytes reported to it."""

    label: str
    total: int
    advanced: int = 0

    def advance(self, amount: int) -> None:
        self.advanced += amount


def _empty_outputs() -> list[OutputRecord]:
    """Factory for empty outputs list (helps type inference)."""
    return []


def _empty_progress() -> list[ProgressRecord]:
    return []


@dataclass
class MockConsole:
    """Console implementation that captures output for testing."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)
    progress_bars: list[ProgressRecord] = field(default_factory=_empty_progress)
    verbose: bool = True

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def detail(self, message: str) -> None:
        if self.verbose:
            self.outputs.append(OutputRecord(message, Style.DIM))

    @contextmanager
    def progress(self, label: str, total: int) -> Iterator[ProgressTask]:
        record = ProgressRecord(label=label, total=total)
        self.progress_bars.append(record)
        yield record

    # Test helper methods

    def clear(self) -> None:
        """Clear all captured output."""
        self.outputs.clear()
        self.progress_bars.clear()

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        """Get all output as a single newline-separated string."""
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Find all outputs containing a substring."""
        return [o for o in self.outputs if substring in o.message]
