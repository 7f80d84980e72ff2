from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from rustwrap.core.config import load_config
from rustwrap.core.errors import error_exit_code
from rustwrap.core.result import Err
from rustwrap.core.session import Session
from rustwrap.output.console import ConsoleProtocol, RichConsole
from rustwrap.output.errors import print_wrap_error
from rustwrap.remote.content import ContentClient
from rustwrap.remote.http import HttpClient, RealHttpClient

TOKEN_ENV = "GITHUB_TOKEN"


@dataclass(frozen=True, slots=True)
class CLIContext:
    session: Session
    http: HttpClient
    client: ContentClient

    @property
    def console(self) -> ConsoleProtocol:
        return self.session.console


def build_context(config_path: Path, *, verbose: bool) -> CLIContext:
    console = RichConsole(verbose=verbose)

    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        print_wrap_error(config_result.error, console)
        raise typer.Exit(code=int(error_exit_code(config_result.error)))

    http = RealHttpClient()
    token = os.environ.get(TOKEN_ENV) or None
    return CLIContext(
        session=Session(config=config_result.value, console=console),
        http=http,
        client=ContentClient(http, token=token),
    )
