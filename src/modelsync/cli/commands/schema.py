"""Schema inspection commands: entities, references and processing order."""

from typing import Annotated

import typer

from modelsync.cli.context import CLIContext
from modelsync.cli.output import OutputFormatter

app = typer.Typer(help="Inspect entity definitions")


@app.command("list")
def schema_list(ctx: typer.Context) -> None:
    """List all entities in the models file."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        manager = cli_ctx.get_manager()
        infos = [manager.describe_entity(entity) for entity in manager.registry]

        if cli_ctx.json_output:
            formatter.print_data([info.name for info in infos])
        else:
            formatter.print_table(
                f"Entities ({len(infos)} total)",
                [
                    {
                        "Name": info.name,
                        "Table": info.table_name,
                        "Attributes": len(info.attributes),
                        "References": ", ".join(info.references),
                        "Features": ", ".join(info.features),
                    }
                    for info in infos
                ],
                ["Name", "Table", "Attributes", "References", "Features"],
            )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("describe")
def schema_describe(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name")],
) -> None:
    """Show detailed entity information."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        manager = cli_ctx.get_manager()
        formatter.print_entity_info(manager.describe_entity(entity_name))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("refs")
def schema_refs(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name")],
) -> None:
    """Show the entities an entity references."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        manager = cli_ctx.get_manager()
        refs = manager.get_references(entity_name)
        if cli_ctx.json_output:
            formatter.print_data(refs)
        else:
            typer.echo(f"{entity_name} references: {', '.join(refs) or '(nothing)'}")
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("order")
def schema_order(ctx: typer.Context) -> None:
    """Show the processing order (referenced entities first)."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        manager = cli_ctx.get_manager()
        names = [entity.name for entity in manager.order()]
        if cli_ctx.json_output:
            formatter.print_data(names)
        else:
            for i, name in enumerate(names, 1):
                typer.echo(f"{i:>3}. {name}")
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
