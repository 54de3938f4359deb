"""CLI for pgshim."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from pgshim.compiler.classifier import can_process, matched_probes
from pgshim.compiler.normalizer import normalize
from pgshim.config import load_settings
from pgshim.errors import PgShimError, QueryExecutionError
from pgshim.executor.duckdb_executor import DuckDBRowSource
from pgshim.models.query import QueryResult
from pgshim.service import QueryService

app = typer.Typer(
    name="pgshim",
    help="pgshim - PostgreSQL compatibility shim for dashboard queries",
    no_args_is_help=True,
)
console = Console()

DbOption = Annotated[str | None, typer.Option("--db", help="DuckDB database path")]
LoadOption = Annotated[
    list[str] | None,
    typer.Option("--load", "-L", help="Load a CSV/Parquet file as a table: name=path"),
]


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[handler], force=True)


def get_row_source(db_path: str | None, loads: list[str] | None) -> DuckDBRowSource:
    source = DuckDBRowSource(db_path)
    for spec in loads or []:
        name, sep, path = spec.partition("=")
        if not sep or not name.strip() or not path.strip():
            source.close()
            raise ValueError(f"Invalid --load value '{spec}', expected name=path")
        source.load_file(name.strip(), path.strip())
    return source


@app.command()
def run(
    sql: Annotated[str, typer.Argument(help="SELECT statement to execute")],
    db_path: DbOption = None,
    loads: LoadOption = None,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Settings YAML file")
    ] = None,
    output: Annotated[
        str, typer.Option("--output", "-o", help="Output format: table, json, csv")
    ] = "table",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Execute a query, converting PostgreSQL syntax where needed."""
    _configure_logging(verbose)

    try:
        settings = load_settings(config)
        source = get_row_source(db_path, loads)
    except Exception as e:
        console.print(f"[red]Error loading data: {e}[/red]")
        raise typer.Exit(1)

    with source:
        service = QueryService(source, settings)
        try:
            result = service.execute(sql)
        except QueryExecutionError as e:
            console.print(f"[red]Query error ({e.error_type}): {e}[/red]")
            for suggestion in e.suggestions:
                console.print(f"  - {suggestion}")
            raise typer.Exit(1)
        except PgShimError as e:
            console.print(f"[red]Query error: {e}[/red]")
            raise typer.Exit(1)

    _output_result(result, output)


def _output_result(result: QueryResult, output_format: str) -> None:
    """Output query result in the specified format."""
    if output_format == "json":
        console.print(json.dumps(result.data, indent=2, default=str))
    elif output_format == "csv":
        if result.data:
            console.print(",".join(result.columns))
            for row in result.data:
                values = [str(row.get(c, "")) for c in result.columns]
                console.print(",".join(values))
    else:
        table = Table(
            title=(
                f"Query Results ({result.row_count} rows, {result.execution_time_ms}ms, "
                f"{result.execution_method})"
            )
        )
        for col in result.columns:
            table.add_column(col)

        for row in result.data:
            values = [str(row.get(c, "")) for c in result.columns]
            table.add_row(*values)

        console.print(table)


@app.command()
def convert(
    sql: Annotated[str, typer.Argument(help="SQL to classify and normalize")],
) -> None:
    """Show how a query would be classified and rewritten, without running it."""
    probes = matched_probes(sql)
    normalized = normalize(sql)
    processable = can_process(normalized)

    lowered = normalized.lower()
    if not probes:
        path = "structured fetch"
    elif not processable:
        path = "unsupported (raw SQL only)"
    elif "date_trunc" in lowered:
        path = "in-memory DATE_TRUNC grouping"
    else:
        path = "in-memory DATE_PART grouping"

    table = Table(title="Classification", show_header=False)
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_row("Fallback probes", ", ".join(probes) or "-")
    table.add_row("Needs fallback", "yes" if probes else "no")
    table.add_row("Can process", "yes" if processable else "no")
    table.add_row("Path", path)
    console.print(table)

    console.print(Syntax(normalized, "sql", theme="monokai", line_numbers=True, word_wrap=True))


@app.command()
def schema(
    db_path: DbOption = None,
    loads: LoadOption = None,
) -> None:
    """List tables and columns of the database."""
    try:
        source = get_row_source(db_path, loads)
    except Exception as e:
        console.print(f"[red]Error loading data: {e}[/red]")
        raise typer.Exit(1)

    with source:
        try:
            tables = QueryService(source).describe_schema()
        except PgShimError as e:
            console.print(f"[red]Error reading schema: {e}[/red]")
            raise typer.Exit(1)

    if not tables:
        console.print("[yellow]No tables found[/yellow]")
        return

    table = Table(title="Schema")
    table.add_column("Table", style="cyan")
    table.add_column("Column", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Nullable")

    for table_schema in tables:
        for col in table_schema.columns:
            table.add_row(
                table_schema.table_name,
                col.name,
                col.data_type,
                "yes" if col.is_nullable else "no",
            )

    console.print(table)


if __name__ == "__main__":
    app()
