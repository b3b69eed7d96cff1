"""CLI commands working on the whole database.

Usage:
    relcache ping
    relcache dump
    relcache purge --yes
"""

from __future__ import annotations

import typer

from relcache.cli.context import console, err_console, run_with_cache


def ping(ctx: typer.Context) -> None:
    """Check the server answers PING."""
    if not run_with_cache(ctx, lambda cache: cache.ping()):
        err_console.print("[red]Server did not answer PING[/red]")
        raise typer.Exit(code=1)
    console.print("[green]PONG[/green]")


def dump(ctx: typer.Context) -> None:
    """List every key (uses KEYS, avoid on large databases)."""
    keys = run_with_cache(ctx, lambda cache: cache.dump())
    for key in keys:
        console.print(key, highlight=False)
    console.print(f"[blue]{len(keys)} key(s)[/blue]")


def purge(
    ctx: typer.Context,
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Confirm dropping every key of the database",
    ),
) -> None:
    """Drop every key of the database (FLUSHDB ASYNC)."""
    if not yes:
        err_console.print("[red]Refusing to purge without --yes[/red]")
        raise typer.Exit(code=1)
    run_with_cache(ctx, lambda cache: cache.purge())
    console.print("[green]✓[/green] purged")
