"""Schema inspection commands."""

from typing import Annotated, Any

import typer

from schemaforge.cli.context import CLIContext, read_schema_file
from schemaforge.cli.output import OutputFormatter
from schemaforge.migrate.tables import table_names
from schemaforge.schema.descriptors import describe_relations
from schemaforge.schema.models import Entity
from schemaforge.schema.resolver import RelationResolver

# Create schema subcommand group
app = typer.Typer(help="Inspect a schema file")

SchemaFile = Annotated[str, typer.Argument(help="Path to a schema DSL file")]


@app.command("tables")
def schema_tables(ctx: typer.Context, path: SchemaFile) -> None:
    """List the tables a schema describes, implicit pivot tables included."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = read_schema_file(path)
        names = table_names(schema)

        if cli_ctx.json_output:
            formatter.print_data(names)
        else:
            rows = []
            for name in names:
                entity = schema.entity_by_table(name)
                rows.append({"Table": name, "Model": entity.short_name if entity else "(pivot)"})
            formatter.print_table(f"Tables ({len(names)} total)", rows, ["Table", "Model"])
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


def _entity_summary(entity: Entity, resolver: RelationResolver) -> dict[str, Any]:
    return {
        "name": entity.full_name,
        "table": entity.table_name,
        "pivot": resolver.is_pivot_entity(entity),
        "fields": [
            {
                "name": f.name,
                "type": f.field_type,
                "nullable": f.resolved_nullable(),
                "primary_key": f.primary_key,
                "implicit": f.implicit,
            }
            for f in entity.fields
        ],
        "relations": [
            {"method": f"{m.name}()", "returns": m.return_type, "kind": resolver.kind(m)}
            for m in entity.methods
        ],
    }


@app.command("describe")
def schema_describe(
    ctx: typer.Context,
    path: SchemaFile,
    entity_name: Annotated[
        str | None, typer.Option("--model", "-m", help="Only describe this model")
    ] = None,
) -> None:
    """Show models with their fields and resolved relation kinds."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = read_schema_file(path)
        resolver = RelationResolver(schema)
        entities = [schema.require_entity(entity_name)] if entity_name else schema.entities
        summaries = [_entity_summary(e, resolver) for e in entities]

        if cli_ctx.json_output:
            formatter.print_data(summaries)
        else:
            for summary in summaries:
                formatter.print_entity(summary)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("relations")
def schema_relations(ctx: typer.Context, path: SchemaFile) -> None:
    """Show relation descriptors for every method."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = read_schema_file(path)
        formatter.print_relations(describe_relations(schema))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
