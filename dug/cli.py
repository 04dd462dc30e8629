from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from dug._engine import HostResolver, ResolutionContractError, resolve_batch
from dug._render import render_ascii, render_json, render_table
from dug._settings import DugSettings

app = typer.Typer(
    add_completion=False,
    help='Resolve hostnames with every available method and compare the answers',
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format='%(message)s',
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def main(
    names: list[str] = typer.Argument(..., help='Hostnames to resolve'),  # noqa: B008
    json_output: bool = typer.Option(False, '--json', help='Print results as JSON'),
    ascii_output: bool = typer.Option(
        False, '--ascii', help='Print plain ASCII tables without colour'
    ),
    lookup_timeout: float | None = typer.Option(  # noqa: B008
        None, '--lookup-timeout', help='Seconds before a DNS lookup is abandoned'
    ),
    process_timeout: float | None = typer.Option(  # noqa: B008
        None, '--process-timeout', help='Seconds before an external tool is abandoned'
    ),
    resolv_conf: Path | None = typer.Option(  # noqa: B008
        None, '--resolv-conf', help='Path to the system resolver configuration'
    ),
    no_tools: bool = typer.Option(False, '--no-tools', help='Skip dig and drill'),
    verbose: int = typer.Option(0, '--verbose', '-v', count=True, help='More logging'),
) -> None:
    if json_output and ascii_output:
        raise typer.BadParameter(
            '--json and --ascii are mutually exclusive', param_hint='--json/--ascii'
        )

    hostnames = [name.strip() for name in names if name.strip()]
    if not hostnames:
        raise typer.BadParameter('at least one hostname is required', param_hint='NAMES')

    _configure_logging(verbose)

    try:
        settings = DugSettings.from_env(
            lookup_timeout=lookup_timeout,
            process_timeout=process_timeout,
            resolv_conf=str(resolv_conf) if resolv_conf else None,
            use_tools=False if no_tools else None,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        results = asyncio.run(
            resolve_batch(hostnames, HostResolver.from_settings(settings))
        )
    except ResolutionContractError as exc:
        err_console.print(f'[bold red]internal error:[/bold red] {exc}')
        raise typer.Exit(code=1) from exc

    if json_output:
        typer.echo(render_json(results))
    elif ascii_output:
        render_ascii(results, Console(no_color=True, highlight=False))
    else:
        render_table(results, console)


if __name__ == '__main__':
    app()
