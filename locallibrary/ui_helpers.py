import json
import os

from rich.console import Console
from rich.table import Table

from locallibrary.models import CatalogCounts

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIBRARY_CLI_OUTPUT"

_console = Console()

COUNT_LABELS = {
    "book_count": "Books",
    "book_instance_count": "Copies",
    "book_instance_available_count": "Copies available",
    "author_count": "Authors",
    "genre_count": "Genres",
}


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_stats_result(counts: CatalogCounts) -> None:
    """Print the catalog counts in the current output mode.
    - plain: 'Label: value' lines
    - json: JSON object keyed by count name
    - rich: Rich table
    """
    mode = get_output_mode()
    data = counts.model_dump()

    if mode == "json":
        print(json.dumps(data, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Local Library", header_style="bold cyan")
        table.add_column("Record", style="white")
        table.add_column("Count", style="magenta", justify="right")
        for key, label in COUNT_LABELS.items():
            value = data.get(key)
            table.add_row(label, "-" if value is None else str(value))
        _console.print(table)
    else:
        for key, label in COUNT_LABELS.items():
            value = data.get(key)
            print(f"{label}: {'-' if value is None else value}")
