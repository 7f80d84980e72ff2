from __future__ import annotations

from pathlib import Path

import typer

from rustwrap import __version__
from rustwrap.cli.context import build_context
from rustwrap.core.config import DEFAULT_CONFIG_FILE
from rustwrap.core.result import Err
from rustwrap.output.errors import print_wrap_error
from rustwrap.services.runner import run_wrap

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="Wrap binary releases for various package registries (npm, Homebrew).",
)


@app.command()
def wrap(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE),
        "--config",
        "-c",
        help="Point to a configuration YAML",
    ),
    out: Path = typer.Option(Path("dist"), "--out", "-o", help="Output directory"),
    tag: str | None = typer.Option(
        None,
        "--tag",
        "-t",
        help="Version tag to package (e.g. '1.0.1'); defaults to the latest release of `repo`",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show details about interactions"),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Download release targets and package them for the configured registries."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    ctx = build_context(config, verbose=verbose)
    result = run_wrap(
        ctx.session,
        out_dir=out,
        tag=tag,
        http=ctx.http,
        client=ctx.client,
    )
    if isinstance(result, Err):
        code = print_wrap_error(result.error, ctx.console)
        raise typer.Exit(code=code)

    report = result.value
    ctx.console.success(f"wrapped {report.version} for {len(report.targets)} target(s)")


def main() -> None:
    app()
