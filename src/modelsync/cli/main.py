"""modelsync CLI - Main entry point."""

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

import modelsync
from modelsync.cli.context import CLIContext
from modelsync.core.config import ModelSyncSettings

app = typer.Typer(
    name="modelsync",
    help="modelsync CLI - dependency-ordered schema sync and fixture seeding",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            help="Database URL (PostgreSQL or SQLite). Env: MODELSYNC_DATABASE_URL",
        ),
    ] = None,
    models: Annotated[
        Path | None,
        typer.Option(
            "--models",
            "-m",
            help="JSON file with entity definitions. Env: MODELSYNC_MODELS_FILE",
        ),
    ] = None,
    fixture_dir: Annotated[
        Path | None,
        typer.Option(
            "--fixture-dir",
            "-f",
            help="Directory of <Entity>.json fixtures. Env: MODELSYNC_FIXTURE_DIR",
        ),
    ] = None,
    echo: Annotated[
        bool,
        typer.Option("--echo", "-e", help="Echo SQL statements to console"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON (machine-readable)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug messages to stderr"),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    settings = ModelSyncSettings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        stream=sys.stderr,
        format="%(levelname)s [%(name)s] %(message)s",
    )

    ctx.obj = CLIContext(
        database_url=database or settings.database_url,
        models_file=models or settings.models_file,
        fixture_dir=fixture_dir or settings.fixture_dir,
        echo=echo or settings.echo,
        json_output=json_output,
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"modelsync v{modelsync.__version__}")


# Register command groups
from modelsync.cli.commands import data, schema, sync  # noqa: E402

app.add_typer(schema.app, name="schema")
app.add_typer(data.app, name="data")

# Register sync as a standalone command (not a group)
app.command(name="sync")(sync.sync_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
