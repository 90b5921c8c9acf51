"""Command-line interface for quickdoc."""

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .config.logging import get_module_logger, setup_logging
from .config.settings import Settings
from .core.exceptions import QuickDocError
from .database.core import Database
from .utils.date_utils import format_duration, parse_ttl, time_until_expiry

T = TypeVar("T")

app = typer.Typer(
    name="quickdoc",
    help="quickdoc - A key-value store on top of document databases",
    add_completion=False,
)
console = Console()

UrlOption = typer.Option(None, "--url", "-u", help="Database URL (defaults to DATABASE_URL)")
CollectionOption = typer.Option(None, "--collection", "-c", help="Collection name")


@app.callback()
def configure(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """quickdoc - A key-value store on top of document databases."""
    settings = Settings()
    if debug:
        settings.DEBUG = True
        settings.LOG_LEVEL = "DEBUG"
    setup_logging(settings)


def _parse_value(raw: str) -> Any:
    """Interpret a command-line value as JSON, falling back to the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _run(url: Optional[str], collection: Optional[str], action: Callable[[Database], Awaitable[T]]) -> T:
    """Open a database, run ``action`` against it and close it again."""
    settings = Settings()

    async def runner() -> T:
        db = Database(url, {"collection_name": collection}, settings=settings)
        async with db:
            return await action(db)

    try:
        return asyncio.run(runner())
    except QuickDocError as e:
        get_module_logger("cli").error("Command failed", error=e.message, error_code=e.error_code)
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def _print_value(value: Any) -> None:
    console.print_json(json.dumps(value, default=str))


@app.command("get")
def get_value(
    key: str = typer.Argument(..., help="Key, dot notation allowed"),
    url: Optional[str] = UrlOption,
    collection: Optional[str] = CollectionOption,
) -> None:
    """Print the value stored at KEY."""
    value = _run(url, collection, lambda db: db.get(key))
    if value is None:
        console.print(f"[yellow]No value for {key}[/yellow]")
        raise typer.Exit(code=1)
    _print_value(value)


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Key, dot notation allowed"),
    value: str = typer.Argument(..., help="Value (parsed as JSON when possible)"),
    ttl: str = typer.Option("-1", "--ttl", "-t", help="Time to live: seconds or 30s/5m/1h/2d/1w"),
    url: Optional[str] = UrlOption,
    collection: Optional[str] = CollectionOption,
) -> None:
    """Store VALUE at KEY."""
    try:
        ttl_seconds = parse_ttl(ttl)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    result = _run(url, collection, lambda db: db.set(key, _parse_value(value), ttl_seconds))
    if ttl_seconds > 0:
        console.print(f"[green]Stored {key} (expires in {format_duration(ttl_seconds)})[/green]")
    else:
        console.print(f"[green]Stored {key}[/green]")
    _print_value(result)


@app.command("delete")
def delete_value(
    key: str = typer.Argument(..., help="Key, dot notation allowed"),
    url: Optional[str] = UrlOption,
    collection: Optional[str] = CollectionOption,
) -> None:
    """Delete KEY."""
    deleted = _run(url, collection, lambda db: db.delete(key))
    if deleted:
        console.print(f"[green]Deleted {key}[/green]")
    else:
        console.print(f"[yellow]Nothing to delete at {key}[/yellow]")


@app.command("all")
def list_all(
    limit: int = typer.Option(0, "--limit", "-l", help="Maximum records (0 for all)"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Dotted field to sort by"),
    url: Optional[str] = UrlOption,
    collection: Optional[str] = CollectionOption,
) -> None:
    """List every record that has not expired."""
    records = _run(url, collection, lambda db: db.all_raw({"limit": limit, "sort": sort}))

    table = Table(title="Records")
    table.add_column("ID", style="cyan")
    table.add_column("Data")
    table.add_column("Expires in", style="magenta")
    for record in records:
        remaining = time_until_expiry(record.expire_at)
        table.add_row(
            record.id,
            json.dumps(record.data, default=str),
            format_duration(remaining) if remaining is not None else "never",
        )
    console.print(table)


@app.command("count")
def count_records(
    url: Optional[str] = UrlOption,
    collection: Optional[str] = CollectionOption,
) -> None:
    """Print the number of records that have not expired."""
    console.print(_run(url, collection, lambda db: db.count()))


@app.command("clear")
def clear_records(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    url: Optional[str] = UrlOption,
    collection: Optional[str] = CollectionOption,
) -> None:
    """Delete every record in the collection."""
    if not yes and not typer.confirm("Delete every record in the collection?"):
        raise typer.Abort()
    _run(url, collection, lambda db: db.delete_all())
    console.print("[green]Collection cleared[/green]")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"quickdoc version {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
