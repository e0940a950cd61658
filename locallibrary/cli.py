import asyncio
from typing import Optional

import typer
from rich.console import Console

from locallibrary.config import settings
from locallibrary.database import initialize_database
from locallibrary.handlers.home import catalog_counts
from locallibrary.seed import populate
from locallibrary.store import CatalogStore
from locallibrary.ui_helpers import print_stats_result, set_output_mode

console = Console()

app = typer.Typer(help="Local Library CLI")


@app.callback()
def _global_options(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="Database file (default: LIBRARY_DB_FILE or locallibrary.db)",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
):
    """Global options for the CLI (database file, output mode)."""
    ctx.obj = {"db": db or settings.database_file}
    if output:
        set_output_mode(output)


@app.command("init-db")
def cli_init_db(ctx: typer.Context):
    """Create the catalog tables."""
    initialize_database(ctx.obj["db"])
    print(f"Database initialized: {ctx.obj['db']}")


@app.command("populate")
def cli_populate(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Add the sample data even if the catalog is not empty"),
):
    """Fill the catalog with sample authors, genres, books and copies."""
    store = CatalogStore(ctx.obj["db"])
    if not force and (store.books.count() or store.authors.count()):
        print("Catalog is not empty; use --force to add the sample data anyway.")
        raise typer.Exit(code=1)
    created = populate(store)
    for name, count in created.items():
        print(f"Created {count} {name.replace('_', ' ')}")


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show the record counts from the catalog home page."""
    store = CatalogStore(ctx.obj["db"])
    counts, error = asyncio.run(catalog_counts(store))
    if error:
        console.print(f"[bold red]Some counts could not be read: {error}[/]")
    print_stats_result(counts)


@app.command("serve")
def cli_serve(
    ctx: typer.Context,
    host: str = typer.Option(settings.api_host, "--host", help="Bind address"),
    port: int = typer.Option(settings.api_port, "--port", help="Port"),
):
    """Run the catalog web app with uvicorn."""
    import uvicorn

    from locallibrary.api import create_app

    console.print(f"[bold green]Serving {settings.app_name} on http://{host}:{port}/catalog[/]")
    uvicorn.run(create_app(ctx.obj["db"]), host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    app()
