"""CLI commands for relcache.

Provides command-line interface using Typer:
- relcache get/set: Read and write cache entries
- relcache resolve: Show the relevance set of a key
- relcache delete: Cascading delete
- relcache ping/dump/purge: Server-wide helpers

Usage:
    relcache --help
    relcache --url rediss://cache.internal:6380/0 ping
    relcache set user:1 '{"name": "Ada"}' --relevant users:list
    relcache delete 'user:*'
"""

from typing import Optional

import typer

from relcache.cli import keys_cmd, server_cmd
from relcache.cli.context import CliOptions
from relcache.config import settings
from relcache.observability.logging import configure_logging

# Main CLI application
app = typer.Typer(
    name="relcache",
    help="relcache: Redis cache with cascading invalidation",
    no_args_is_help=True,
)

app.command("get")(keys_cmd.get)
app.command("set")(keys_cmd.set_)
app.command("resolve")(keys_cmd.resolve)
app.command("delete")(keys_cmd.delete)
app.command("ping")(server_cmd.ping)
app.command("dump")(server_cmd.dump)
app.command("purge")(server_cmd.purge)


@app.callback()
def callback(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Redis URL (defaults to REDIS_URL); rediss:// enables TLS",
    ),
    skip_tls_verify: bool = typer.Option(
        False,
        "--skip-tls-verify",
        help="Do not verify the server certificate",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error (defaults to RELCACHE_LOG_LEVEL)",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as JSON",
    ),
) -> None:
    """relcache: Redis cache with cascading invalidation."""
    configure_logging(
        json_format=json_logs or settings.log_json,
        level=log_level or settings.log_level,
    )
    ctx.obj = CliOptions(url=url, skip_tls_verify=skip_tls_verify or None)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
