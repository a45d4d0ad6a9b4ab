"""CLI for ExploreQL."""

import json
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from exploreql.executor.duckdb_executor import DuckDBExecutor
from exploreql.parser.introspect import introspect_tables
from exploreql.parser.loader import explore_to_dict
from exploreql.settings import Settings, configure_logging
from exploreql.store import ExploreStore

app = typer.Typer(
    name="eql",
    help="ExploreQL - compile semantic explore queries to SQL",
    no_args_is_help=True,
)
console = Console()

ExploresDir = Annotated[
    Path | None, typer.Option("--dir", "-d", help="Explores directory")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    settings = Settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    configure_logging(settings)


def get_store(
    explores_dir: Path | None,
    db_path: str | None = None,
    dialect: str | None = None,
    pretty: bool = False,
) -> ExploreStore:
    settings = Settings()
    updates = {}
    if dialect:
        updates["dialect"] = dialect
    if pretty:
        updates["pretty_sql"] = True
    if updates:
        settings = settings.model_copy(update=updates)
    return ExploreStore(explores_dir, db_path, settings=settings)


def _split(value: str | None, sep: str = ",") -> list[str]:
    return [v.strip() for v in value.split(sep) if v.strip()] if value else []


@app.command("list")
def list_items(
    item_type: Annotated[str, typer.Argument(help="Type: explores, dimensions, or measures")],
    explores_dir: ExploresDir = None,
    explore: Annotated[
        str | None, typer.Option("--explore", "-e", help="Only list fields of this explore")
    ] = None,
) -> None:
    """List explores, dimensions, or measures."""
    try:
        store = get_store(explores_dir)
    except Exception as e:
        console.print(f"[red]Error loading explores: {e}[/red]")
        raise typer.Exit(1)

    with store:
        try:
            if item_type == "explores":
                _list_explores(store)
            elif item_type == "dimensions":
                _list_dimensions(store, explore)
            elif item_type == "measures":
                _list_measures(store, explore)
            else:
                console.print(
                    f"[red]Unknown type: {item_type}. Use: explores, dimensions, measures[/red]"
                )
                raise typer.Exit(1)
        except KeyError as e:
            console.print(f"[red]Error: {e.args[0]}[/red]")
            raise typer.Exit(1)


def _list_explores(store: ExploreStore) -> None:
    explores = store.list_explores()

    if not explores:
        console.print("[yellow]No explores defined[/yellow]")
        return

    table = Table(title="Explores")
    table.add_column("Name", style="cyan")
    table.add_column("Base table", style="green")
    table.add_column("Joins", style="yellow")
    table.add_column("Fields")

    for explore in explores:
        table.add_row(
            explore["name"],
            explore["base_table"],
            ", ".join(explore["joined_tables"]) or "-",
            str(explore["fields"]),
        )

    console.print(table)


def _list_dimensions(store: ExploreStore, explore: str | None) -> None:
    dims = store.list_dimensions(explore)

    if not dims:
        console.print("[yellow]No dimensions defined[/yellow]")
        return

    table = Table(title="Dimensions")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Explore", style="yellow")
    table.add_column("Filterable")
    table.add_column("Description")

    for dim in dims:
        table.add_row(
            dim["field_id"],
            dim["type"],
            dim["explore"],
            "yes" if dim["filterable"] else "no",
            dim["description"] or "-",
        )

    console.print(table)


def _list_measures(store: ExploreStore, explore: str | None) -> None:
    measures = store.list_measures(explore)

    if not measures:
        console.print("[yellow]No measures defined[/yellow]")
        return

    table = Table(title="Measures")
    table.add_column("Field", style="cyan")
    table.add_column("Aggregation", style="green")
    table.add_column("Explore", style="yellow")
    table.add_column("Description")

    for measure in measures:
        table.add_row(
            measure["field_id"],
            measure["type"],
            measure["explore"],
            measure["description"] or "-",
        )

    console.print(table)


def _build_sql(
    store: ExploreStore,
    explore: str,
    dimensions: str | None,
    measures: str | None,
    filters: str | None,
    sorts: str | None,
    limit: int | None,
) -> str:
    filter_groups = [store.parse_filter(explore, f) for f in _split(filters, ";")]
    return store.get_sql(
        explore,
        dimensions=_split(dimensions),
        measures=_split(measures),
        filters=filter_groups,
        sorts=_split(sorts),
        limit=limit,
    )


@app.command()
def query(
    explore: Annotated[str, typer.Argument(help="Explore name")],
    explores_dir: ExploresDir = None,
    db_path: Annotated[str | None, typer.Option("--db", help="DuckDB database path")] = None,
    dimensions: Annotated[
        str | None, typer.Option("--dimensions", "-g", help="Comma-separated dimension ids")
    ] = None,
    measures: Annotated[
        str | None, typer.Option("--measures", "-m", help="Comma-separated measure ids")
    ] = None,
    filters: Annotated[
        str | None,
        typer.Option("--filter", "-f", help="Semicolon-separated filters, e.g. orders_status=paid"),
    ] = None,
    sorts: Annotated[
        str | None, typer.Option("--sort", help="Comma-separated sort ids, '-' prefix for desc")
    ] = None,
    show_sql: Annotated[bool, typer.Option("--sql", "-s", help="Show generated SQL")] = False,
    output: Annotated[
        str, typer.Option("--output", "-o", help="Output format: table, json")
    ] = "table",
    limit: Annotated[int | None, typer.Option("--limit", "-l", help="Maximum rows")] = None,
) -> None:
    """Run a query against an explore."""
    try:
        store = get_store(explores_dir, db_path)
    except Exception as e:
        console.print(f"[red]Error loading explores: {e}[/red]")
        raise typer.Exit(1)

    with store:
        try:
            sql = _build_sql(store, explore, dimensions, measures, filters, sorts, limit)
            if show_sql:
                console.print(Syntax(sql, "sql", theme="monokai", line_numbers=True))
                console.print()
            result = store.executor.execute(sql)
        except Exception as e:
            console.print(f"[red]Query error: {e}[/red]")
            raise typer.Exit(1)

    _output_result(result, output)


def _output_result(result, output_format: str) -> None:
    """Output query result in the specified format."""
    if output_format == "json":
        console.print(json.dumps(result.data, indent=2, default=str))
        return

    table = Table(title=f"Query Results ({result.row_count} rows, {result.execution_time_ms}ms)")
    for col in result.columns:
        table.add_column(col)

    for row in result.data:
        table.add_row(*[str(row.get(c, "")) for c in result.columns])

    console.print(table)


@app.command()
def validate(explores_dir: ExploresDir = None) -> None:
    """Validate all explore definitions."""
    try:
        store = get_store(explores_dir)
    except Exception as e:
        console.print(f"[red]Error loading explores: {e}[/red]")
        raise typer.Exit(1)

    with store:
        errors = store.validate()
        explores = list(store.registry.explores.values())

    if errors:
        console.print("[red]Validation failed:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        raise typer.Exit(1)

    field_count = sum(len(e.get_fields()) for e in explores)
    console.print(
        f"[green]Validated {len(explores)} explores and "
        f"{field_count} fields successfully![/green]"
    )


@app.command("show-sql")
def show_sql(
    explore: Annotated[str, typer.Argument(help="Explore name")],
    explores_dir: ExploresDir = None,
    dimensions: Annotated[
        str | None, typer.Option("--dimensions", "-g", help="Comma-separated dimension ids")
    ] = None,
    measures: Annotated[
        str | None, typer.Option("--measures", "-m", help="Comma-separated measure ids")
    ] = None,
    filters: Annotated[
        str | None,
        typer.Option("--filter", "-f", help="Semicolon-separated filters, e.g. orders_status=paid"),
    ] = None,
    sorts: Annotated[
        str | None, typer.Option("--sort", help="Comma-separated sort ids, '-' prefix for desc")
    ] = None,
    limit: Annotated[int | None, typer.Option("--limit", "-l", help="Maximum rows")] = None,
    dialect: Annotated[
        str | None, typer.Option("--dialect", help="SQL dialect, e.g. postgres, bigquery")
    ] = None,
    pretty: Annotated[bool, typer.Option("--pretty", help="Format SQL with sqlglot")] = False,
    plain: Annotated[bool, typer.Option("--plain", help="Print SQL without highlighting")] = False,
) -> None:
    """Show generated SQL without executing."""
    try:
        store = get_store(explores_dir, dialect=dialect, pretty=pretty)
    except Exception as e:
        console.print(f"[red]Error loading explores: {e}[/red]")
        raise typer.Exit(1)

    with store:
        try:
            sql = _build_sql(store, explore, dimensions, measures, filters, sorts, limit)
        except Exception as e:
            console.print(f"[red]Error generating SQL: {e}[/red]")
            raise typer.Exit(1)

    if plain:
        typer.echo(sql)
    else:
        console.print(Syntax(sql, "sql", theme="monokai", line_numbers=True))


@app.command()
def introspect(
    tables: Annotated[str, typer.Argument(help="Comma-separated table names")],
    db_path: Annotated[str, typer.Option("--db", help="DuckDB database path")],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write YAML here instead of stdout")
    ] = None,
) -> None:
    """Generate explore definitions from DuckDB table schemas."""
    try:
        with DuckDBExecutor(db_path) as executor:
            explores = introspect_tables(executor, _split(tables))
    except Exception as e:
        console.print(f"[red]Introspection error: {e}[/red]")
        raise typer.Exit(1)

    text = yaml.safe_dump(
        {"explores": [explore_to_dict(e) for e in explores]}, sort_keys=False
    )
    if output:
        output.write_text(text)
        console.print(f"[green]Wrote {len(explores)} explores to {output}[/green]")
    else:
        typer.echo(text)


if __name__ == "__main__":
    app()
