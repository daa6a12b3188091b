"""Command line interface for Schema Studio."""

import sys
from json import dumps, loads
from pathlib import Path
from sys import stdout
from typing import Literal

from cyclopts import App
from dbmodel import (
    Problem,
    find_problems,
    load_model,
    parse_model,
    read_only_sqlite,
    relationship_kinds,
    sqlite_to_model,
)
from dbmodel.types import Model
from ddl import model_to_html, model_to_sql
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

app = App(help="Schema Studio CLI tool")

console = Console()
err_console = Console(stderr=True)

# Constants
MODEL_EXTENSIONS = {".json"}
SQLITE_EXTENSIONS = {".sqlite", ".db", ".sqlite3"}


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def validate_input_file(location: Path, file_extensions: set[str]) -> None:
    """Exit unless `location` is an existing file with a known extension."""
    if not location.is_file():
        print_error(f"File does not exist: {location}")
        sys.exit(1)
    if location.suffix.lower() not in file_extensions:
        expected = ", ".join(sorted(file_extensions))
        print_error(f"File has invalid extension, expected: {expected}")
        sys.exit(1)


def read_model(location: Path, *, sanitize: bool = True) -> Model:
    """Read a model file, exiting with an error message when it is rejected."""
    validate_input_file(location, MODEL_EXTENSIONS)
    print_info(f"Model: {location}")
    try:
        payload = loads(location.read_text(encoding="utf-8"))
        return load_model(payload) if sanitize else parse_model(payload)
    except (OSError, ValueError) as e:
        print_error(f"Cannot load model: {e}")
        sys.exit(1)


def format_problems_table(problems: list[Problem]) -> None:
    """Format model problems as a rich table."""
    table = Table(title="Model Problems")
    table.add_column("Location", style="bold cyan")
    table.add_column("Problem", style="bold yellow")
    for path, message in problems:
        table.add_row(path, message)
    console.print(table)


def format_relationships_table(model: Model) -> None:
    """Format every foreign key with its effective cardinality."""
    tables = {table["id"]: table for table in model["tables"]}

    table_view = Table(title="Relationships")
    table_view.add_column("Constraint", style="bold cyan")
    table_view.add_column("From")
    table_view.add_column("To")
    table_view.add_column("Cardinality", style="bold yellow")

    for table in model["tables"]:
        columns = {column["id"]: column["name"] for column in table["columns"]}
        for fk in table["foreign_keys"]:
            target = tables[fk["to_table_id"]]
            target_columns = {col["id"]: col["name"] for col in target["columns"]}
            kinds = relationship_kinds(model, table, fk)
            table_view.add_row(
                fk["name"],
                f"{table['name']}.{columns[fk['from_column_id']]}",
                f"{target['name']}.{target_columns[fk['to_column_id']]}",
                f"{kinds.start} → {kinds.end}",
            )

    console.print(table_view)


@app.command
def ddl(model_location: Path, fmt: Literal["sql", "html"] = "sql") -> None:
    """Generate the DDL script of a model file."""
    model = read_model(model_location)
    print_info(f"Output format: {fmt}")

    if fmt == "sql":
        stdout.write(model_to_sql(model))
        stdout.write("\n")
    elif fmt == "html":
        stdout.write(model_to_html(model, title=model_location.stem))

    print_success("DDL generation completed successfully")


@app.command
def check(model_location: Path) -> None:
    """Report broken references and name collisions in a model file."""
    model = read_model(model_location, sanitize=False)
    problems = find_problems(model)
    if not problems:
        print_success("No problems found")
        return

    format_problems_table(problems)
    print_error(f"{len(problems)} problem(s) found")
    sys.exit(1)


@app.command
def relationships(model_location: Path) -> None:
    """List foreign keys with their effective cardinality."""
    model = read_model(model_location)
    format_relationships_table(model)


@app.command
def reflect(sqlite_location: Path, fmt: Literal["json", "sql"] = "json") -> None:
    """Reflect a SQLite database into a model."""
    from sqlalchemy.exc import SQLAlchemyError

    validate_input_file(sqlite_location, SQLITE_EXTENSIONS)
    print_info(f"Source database: {sqlite_location}")
    print_info(f"Output format: {fmt}")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Reflecting database...", total=None)
        try:
            model = sqlite_to_model(read_only_sqlite(sqlite_location))
        except (SQLAlchemyError, ValueError) as e:
            print_error(f"Reflection failed: {e}")
            sys.exit(1)

    if fmt == "json":
        stdout.write(dumps(model, indent=2))
    elif fmt == "sql":
        stdout.write(model_to_sql(model))
    stdout.write("\n")

    print_success(f"Reflected {len(model['tables'])} table(s)")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
