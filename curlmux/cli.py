"""
curlmux CLI

Command-line interface for running many HTTP transfers concurrently on
one control thread.

Usage:
    curlmux fetch URL [URL ...]      # Fetch URLs concurrently
    curlmux fetch --json URL ...     # Also validate and decode JSON bodies
    curlmux config                   # Show effective configuration
    curlmux config --example         # Print an example config file
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import click
import pycurl
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.logging import RichHandler

from .config import EXAMPLE_CONFIG, MultiConfig, load_config
from .constants import MultiCode, TRANSFER_OK
from .exceptions import ContentTypeError, CurlClientException
from .response import JsonResponse
from .transfer import CurlHandle, Multi

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level: str = 'INFO'):
    """Configure logging with rich output."""
    level = 'DEBUG' if verbose else level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)]
    )


@dataclass
class FetchResult:
    """What one transfer produced, as shown in the results table."""
    url: str
    result: int
    status_code: int = 0
    size: int = 0
    elapsed: float = 0.0
    error: str = ''
    json_ok: Optional[bool] = None


def fetch_all(config: MultiConfig, urls: List[str], check_json: bool = False):
    """
    Fetch every URL on a single Multiplexor.

    Returns:
        (run status, results in completion order)
    """
    results: List[FetchResult] = []

    def on_done(handle: CurlHandle, result: int) -> None:
        response = handle.response()
        row = FetchResult(
            url=handle.request.url,
            result=result,
            status_code=response.status_code,
            size=len(response.body),
            elapsed=response.elapsed,
            error=handle.error_message,
        )

        if check_json and result == TRANSFER_OK:
            decoder = JsonResponse(response)
            try:
                decoder.check_content_type()
                decoder.get_json()
                row.json_ok = True
            except (ContentTypeError, ValueError) as e:
                row.json_ok = False
                row.error = str(e)

        results.append(row)
        handle.close()

    logger.debug(f"Fetching {len(urls)} URL(s)")

    with Multi(config.engine_options()) as multi:
        config.apply(multi)

        for url in urls:
            multi.add(config.make_request(url).handle(), on_done)

        status = multi.run()

    return status, results


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='JSON config file')
@click.pass_context
def cli(ctx, verbose, config_path):
    """curlmux - concurrent HTTP transfers on a single control thread."""
    config = load_config(Path(config_path) if config_path else None)
    setup_logging(verbose, config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.argument('urls', nargs=-1, required=True)
@click.option('--max-host-connections', type=int, default=None,
              help='Parallel connections per host')
@click.option('--wait-time', type=float, default=None,
              help='Minimum loop iteration time (seconds)')
@click.option('--timeout', type=float, default=None, help='Per-transfer timeout (seconds)')
@click.option('--json', 'check_json', is_flag=True, help='Require and decode JSON bodies')
@click.pass_context
def fetch(ctx, urls, max_host_connections, wait_time, timeout, check_json):
    """Fetch URLs concurrently."""
    config: MultiConfig = ctx.obj['config']

    if max_host_connections is not None:
        config.max_host_connections = max_host_connections
    if wait_time is not None:
        config.loop_wait_time = wait_time
    if timeout is not None:
        config.timeout = timeout

    try:
        status, results = fetch_all(config, list(urls), check_json)
    except CurlClientException as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    table = Table(title="Transfers")
    table.add_column("URL", style="cyan")
    table.add_column("HTTP", justify="right")
    table.add_column("Result", justify="right")
    table.add_column("Size", justify="right", style="yellow")
    table.add_column("Time", justify="right")
    if check_json:
        table.add_column("JSON")
    table.add_column("Error", style="red")

    for r in results:
        row = [
            r.url,
            str(r.status_code) if r.status_code else '-',
            '[green]ok[/green]' if r.result == TRANSFER_OK else f"[red]{r.result}[/red]",
            format_size(r.size),
            f"{r.elapsed:.3f}s",
        ]
        if check_json:
            row.append('-' if r.json_ok is None else ('[green]✓[/green]' if r.json_ok else '[red]✗[/red]'))
        row.append(r.error)
        table.add_row(*row)

    console.print(table)

    if status != MultiCode.OK:
        console.print(f"[red]✗ Run aborted with multi status {status}[/red]")
        sys.exit(1)

    failed = sum(1 for r in results if r.result != TRANSFER_OK or r.json_ok is False)
    if failed:
        console.print(f"[yellow]{failed} of {len(results)} transfer(s) failed[/yellow]")
    else:
        console.print(f"[green]✓ {len(results)} transfer(s) completed[/green]")


@cli.command('config')
@click.option('--example', is_flag=True, help='Print an example config file')
@click.pass_context
def show_config(ctx, example):
    """Show effective configuration."""
    if example:
        click.echo(EXAMPLE_CONFIG.strip())
        return

    config: MultiConfig = ctx.obj['config']
    lines = [f"{key}: [yellow]{value}[/yellow]" for key, value in config.to_dict().items()]

    console.print(Panel.fit(
        "\n".join(lines) + f"\n\n[dim]libcurl: {pycurl.version}[/dim]",
        title="curlmux Configuration"
    ))


def format_size(bytes_count: int) -> str:
    """Format bytes as human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024
    return f"{bytes_count:.1f} PB"


if __name__ == '__main__':
    cli()
