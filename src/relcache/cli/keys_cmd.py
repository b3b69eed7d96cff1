"""CLI commands working on individual keys.

Usage:
    relcache get user:1
    relcache set user:1 '{"name": "Ada"}' --ttl 300 --relevant users:list
    relcache resolve 'user:*'
    relcache delete user:1 --hard
"""

from __future__ import annotations

import typer

from relcache.cache.keys import Item
from relcache.cli.context import console, run_with_cache


def get(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key to read"),
) -> None:
    """Print the payload stored at KEY."""
    payload = run_with_cache(ctx, lambda cache: cache.get(key))
    console.print(payload.decode("utf-8", errors="replace"), highlight=False)


def set_(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key to write"),
    value: str = typer.Argument(..., help="Value to store"),
    ttl: int = typer.Option(
        0,
        "--ttl",
        "-t",
        min=0,
        help="Expiration in seconds (0 = never)",
    ),
    relevant: list[str] = typer.Option(
        [],
        "--relevant",
        "-r",
        help="Key deleted together with KEY (repeatable, wildcards allowed)",
    ),
    raw: bool = typer.Option(
        False,
        "--raw",
        help="Store the value as-is, without relevance metadata",
    ),
) -> None:
    """Store VALUE at KEY."""
    if raw and relevant:
        raise typer.BadParameter("--raw cannot be combined with --relevant")

    if raw:
        run_with_cache(ctx, lambda cache: cache.write_raw_with_ttl(key, value, ttl))
    else:
        try:
            item = Item(
                key=key, payload=value.encode("utf-8"), ttl=ttl, relevant_keys=tuple(relevant)
            )
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="KEY") from e
        run_with_cache(ctx, lambda cache: cache.write_item(item))

    console.print(f"[green]✓[/green] {key}")


def resolve(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Cache key or pattern"),
) -> None:
    """List the keys a cascading delete of KEY would remove."""
    keys = run_with_cache(ctx, lambda cache: cache.relevant_keys(key))
    if not keys:
        console.print(f"[yellow]Nothing relevant to {key}[/yellow]")
        return
    for resolved in keys:
        console.print(resolved, highlight=False)


def delete(
    ctx: typer.Context,
    keys: list[str] = typer.Argument(..., help="Cache keys or patterns to delete"),
    hard: bool = typer.Option(
        False,
        "--hard",
        help="Use DEL instead of UNLINK",
    ),
) -> None:
    """Delete KEYS and every key relevant to them."""
    if hard:
        removed = run_with_cache(ctx, lambda cache: cache.delete(*keys))
    else:
        removed = run_with_cache(ctx, lambda cache: cache.unlink(*keys))
    console.print(f"[blue]Removed {removed} key(s)[/blue]")
