"""Data commands: seed fixtures and read rows back."""

import asyncio
from typing import Annotated, Any

import typer

from modelsync.cli.context import CLIContext
from modelsync.cli.output import OutputFormatter, ProgressBarWrapper
from modelsync.cli.parsing import parse_where
from modelsync.core.types import FixtureResult
from modelsync.fixtures import ProgressCallback

app = typer.Typer(help="Seed and read entity data")


async def _run_load(
    cli_ctx: CLIContext, on_populate: ProgressCallback, sync_first: bool
) -> list[FixtureResult]:
    async with cli_ctx.get_manager(on_populate=on_populate) as manager:
        if sync_first:
            await manager.sync_all()
        return await manager.load_fixtures()


@app.command("load")
def data_load(
    ctx: typer.Context,
    no_sync: Annotated[
        bool,
        typer.Option("--no-sync", help="Do not create missing tables first"),
    ] = False,
) -> None:
    """Seed empty tables from fixture files.

    Examples:

        modelsync -m models.json -f fixtures data load
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        with ProgressBarWrapper(cli_ctx.json_output) as progress:
            results = asyncio.run(_run_load(cli_ctx, progress.on_populate, not no_sync))

        rows = [result.model_dump() for result in results]
        if cli_ctx.json_output:
            formatter.print_data(rows)
        else:
            formatter.print_table(
                f"Fixtures ({len(rows)} total)",
                rows,
                ["entity_name", "status", "rows_inserted", "error"],
            )
        if any(result.status == "failed" for result in results):
            raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


async def _run_values(
    cli_ctx: CLIContext, table: str, where: dict[str, Any], raw: bool
) -> dict[Any, Any]:
    async with cli_ctx.get_manager() as manager:
        return await manager.get_values(table, where=where or None, raw=raw)


@app.command("values")
def data_values(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table name")],
    where: Annotated[
        list[str] | None,
        typer.Option("--where", "-w", help="Filter as name=value. Can be repeated."),
    ] = None,
    raw: Annotated[bool, typer.Option("--raw", help="Show full rows")] = False,
) -> None:
    """Show rows of a table keyed by primary key."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        values = asyncio.run(_run_values(cli_ctx, table, parse_where(where), raw))
        formatter.print_data({str(key): value for key, value in values.items()})
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
