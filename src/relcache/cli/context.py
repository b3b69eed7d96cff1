"""Shared plumbing for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import typer
from rich.console import Console

from relcache.cache.redis import RelevantCache
from relcache.errors import RelCacheError

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliOptions:
    """Connection options collected by the top-level callback."""

    url: str | None = None
    skip_tls_verify: bool | None = None


def run_with_cache(ctx: typer.Context, operation: Callable[[RelevantCache], Awaitable[T]]) -> T:
    """Connect, run ``operation`` against the cache and close the connection.

    Library errors are reported on stderr and turned into exit code 1.
    """
    options: CliOptions = ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()

    async def _run() -> T:
        cache = await RelevantCache.connect(options.url, skip_tls_verify=options.skip_tls_verify)
        async with cache:
            return await operation(cache)

    try:
        return asyncio.run(_run())
    except RelCacheError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
