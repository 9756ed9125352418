"""Schema synchronization command."""

import asyncio
from typing import Annotated

import typer

from modelsync.cli.context import CLIContext
from modelsync.cli.output import OutputFormatter
from modelsync.core.types import SyncReport


async def _run_sync(cli_ctx: CLIContext, force: bool, entity: str | None) -> SyncReport:
    async with cli_ctx.get_manager() as manager:
        await manager.connect()
        if entity is None:
            return await manager.sync_all(force=force)
        await manager.sync(entity, force=force)
        return SyncReport(synchronized=manager.ledger, force=force)


def sync_command(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", help="Drop and recreate tables (destroys data)"),
    ] = False,
    entity: Annotated[
        str | None,
        typer.Option("--entity", "-n", help="Only this entity and what it references"),
    ] = None,
) -> None:
    """Create missing tables, referenced tables first.

    Examples:

        modelsync -m models.json sync
        modelsync -m models.json sync --entity Book
        modelsync -m models.json sync --force
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    if force and not cli_ctx.json_output:
        typer.confirm("--force drops existing tables and their data. Continue?", abort=True)

    try:
        report = asyncio.run(_run_sync(cli_ctx, force, entity))
        formatter.print_success(
            f"Synchronized {report.count} entities",
            {"synchronized": report.synchronized, "force": report.force},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
