"""Change set commands."""

from typing import Annotated

import typer

from schemaforge.cli.context import CLIContext, read_schema_file
from schemaforge.cli.output import OutputFormatter
from schemaforge.migrate.diff import diff
from schemaforge.migrate.snapshot import SchemaSnapshot

# Create migrate subcommand group
app = typer.Typer(help="Compare schema files with a database")


@app.command("diff")
def migrate_diff(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Path to a schema DSL file")],
    snapshot_path: Annotated[
        str | None,
        typer.Option("--snapshot", "-s", help="Compare against a snapshot JSON file"),
    ] = None,
) -> None:
    """Print the changes needed to bring the database up to the schema.

    The current state comes from --snapshot, else from --database, else an
    empty database is assumed.

    Examples:

        schemaforge migrate diff schema.txt --snapshot current.json

        schemaforge -d sqlite:///app.db migrate diff schema.txt
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = read_schema_file(path)
        if snapshot_path:
            snapshot = SchemaSnapshot.load(snapshot_path)
        elif cli_ctx.database_url:
            snapshot = cli_ctx.get_introspector().snapshot()
        else:
            snapshot = SchemaSnapshot()

        formatter.print_change_set(diff(schema, snapshot))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("snapshot")
def migrate_snapshot(ctx: typer.Context) -> None:
    """Dump the current database schema as snapshot JSON."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(json_mode=True)

    try:
        snapshot = cli_ctx.get_introspector().snapshot()
        typer.echo(snapshot.to_json())
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
