"""schemaforge CLI - Main entry point."""

from typing import Annotated

import typer

import schemaforge
from schemaforge.cli.context import CLIContext, configure_logging, get_database_url

# Create main Typer app
app = typer.Typer(
    name="schemaforge",
    help="schemaforge CLI - compile schema DSL files into tables, relations and change sets",
    no_args_is_help=True,
)

# Store CLI context globally (will be set in callback)
state: dict[str, CLIContext] = {}


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="SCHEMAFORGE_DATABASE_URL",
            help="Database URL to read the current schema from",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log debug output to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    configure_logging(verbose)

    cli_ctx = CLIContext(
        database_url=get_database_url(database),
        json_output=json_output,
        verbose=verbose,
    )

    # Store in Typer context for command access
    ctx.obj = cli_ctx
    state["cli_ctx"] = cli_ctx


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"schemaforge v{schemaforge.__version__}")


# Register command groups
from schemaforge.cli.commands import migrate, schema

app.add_typer(schema.app, name="schema")
app.add_typer(migrate.app, name="migrate")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
