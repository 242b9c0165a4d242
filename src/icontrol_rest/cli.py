"""iControl REST command line.

Connection settings come from options or ICONTROL_* environment
variables.

Usage:
    icontrol get /mgmt/tm/ltm/virtual/~Common~vs1       # Raw GET
    icontrol get /mgmt/tm/ltm/virtual/~Common~vs1 --expand
    icontrol pool show ~Common~p1 --subcollections    # Pool with members

    icontrol transaction begin                         # Prints the id
    icontrol transaction commands <id>                 # Queued commands
    icontrol transaction state <id>                    # STARTED/COMPLETED/...
    icontrol transaction commit <id>
    icontrol transaction rollback <id>
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from .api import IControlRest
from .client import IControlRestClient
from .config import ConnectionConfig
from .errors import IControlRestError

T = TypeVar("T")


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True))


def _run(ctx: click.Context, fn: Callable[[IControlRestClient], Awaitable[T]]) -> T:
    """Run ``fn`` against a fresh client, reporting library errors."""
    api: IControlRest = ctx.obj
    client = api.client()
    try:
        return asyncio.run(fn(client))
    except IControlRestError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--url", envvar="ICONTROL_URL", help="Device base URL (no trailing /)")
@click.option("--user", envvar="ICONTROL_USER", help="Basic auth user")
@click.option("--password", envvar="ICONTROL_PASS", help="Basic auth password")
@click.option("--strict/--no-strict", default=None, help="Verify TLS certificates")
@click.option("--verbose", "-v", is_flag=True, help="Log requests to stderr")
@click.pass_context
def main(
    ctx: click.Context,
    url: str | None,
    user: str | None,
    password: str | None,
    strict: bool | None,
    verbose: bool,
) -> None:
    """iControl REST client for traffic management devices."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Tests and embedding callers may pass a prepared IControlRest
    if isinstance(ctx.obj, IControlRest):
        return

    try:
        config = ConnectionConfig.from_env(url=url, user=user, password=password, strict=strict)
    except IControlRestError as e:
        raise click.UsageError(str(e)) from e
    ctx.obj = IControlRest(config)


@main.command("get")
@click.argument("path")
@click.option("--expand", is_flag=True, help="Fetch *Reference links into the payload")
@click.pass_context
def get(ctx: click.Context, path: str, expand: bool) -> None:
    """GET PATH (relative to the device URL) and print the JSON body."""

    async def fetch(client: IControlRestClient) -> Any:
        response = await client.request("GET", path)
        if expand:
            await response.expand()
        return response.data

    _echo_json(_run(ctx, fetch))


# =============================================================================
# Pool Commands
# =============================================================================


@main.group()
def pool() -> None:
    """LTM pools."""


@pool.command("show")
@click.argument("name")
@click.option("--subcollections", is_flag=True, help="Ask the device to expand subcollections")
@click.pass_context
def pool_show(ctx: click.Context, name: str, subcollections: bool) -> None:
    """Show pool NAME (e.g. ~Common~p1)."""

    async def fetch(client: IControlRestClient) -> Any:
        response = await client.auto_expand(subcollections).ltm.get_pool(name)
        return response.data

    _echo_json(_run(ctx, fetch))


# =============================================================================
# Transaction Commands
# =============================================================================


@main.group()
def transaction() -> None:
    """Device-side transactions."""


@transaction.command("begin")
@click.pass_context
def transaction_begin(ctx: click.Context) -> None:
    """Begin a transaction and print its id."""

    async def begin(client: IControlRestClient) -> str:
        await client.begin_transaction()
        return client.get_transaction_id()

    click.echo(_run(ctx, begin))


@transaction.command("commit")
@click.argument("transaction_id")
@click.pass_context
def transaction_commit(ctx: click.Context, transaction_id: str) -> None:
    """Commit TRANSACTION_ID and print the resulting transaction."""

    async def commit(client: IControlRestClient) -> Any:
        response = await client.set_transaction_id(transaction_id).commit_transaction()
        return response.data

    _echo_json(_run(ctx, commit))


@transaction.command("rollback")
@click.argument("transaction_id")
@click.pass_context
def transaction_rollback(ctx: click.Context, transaction_id: str) -> None:
    """Discard TRANSACTION_ID."""

    async def rollback(client: IControlRestClient) -> None:
        await client.rollback_transaction(transaction_id)

    _run(ctx, rollback)
    click.echo(f"Rolled back {transaction_id}")


@transaction.command("state")
@click.argument("transaction_id")
@click.pass_context
def transaction_state(ctx: click.Context, transaction_id: str) -> None:
    """Print the device-side state of TRANSACTION_ID."""

    async def state(client: IControlRestClient) -> str:
        status = await client.get_transaction_state(transaction_id)
        return status.value

    click.echo(_run(ctx, state))


@transaction.command("commands")
@click.argument("transaction_id")
@click.pass_context
def transaction_commands(ctx: click.Context, transaction_id: str) -> None:
    """List commands queued in TRANSACTION_ID."""

    async def commands(client: IControlRestClient) -> Any:
        response = await client.set_transaction_id(transaction_id).get_transaction_commands()
        return response.data

    _echo_json(_run(ctx, commands))


if __name__ == "__main__":
    main()
