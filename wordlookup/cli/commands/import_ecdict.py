"""Build the ECDICT database from its CSV release."""

from pathlib import Path

import typer

from wordlookup.cli.utils.async_runner import run_async
from wordlookup.cli.utils.console import console, error_console
from wordlookup.cli.utils.progress import batch_progress
from wordlookup.config import settings
from wordlookup.services.dictionary.ecdict_import import ImportStats, count_rows, import_ecdict


def import_ecdict_command(
    csv_path: Path = typer.Argument(..., help="Path to stardict.csv"),
    db_path: Path | None = typer.Argument(None, help="Target database (default: ECDICT_DB_PATH)"),
) -> None:
    """Import the ECDICT CSV into a fresh SQLite database."""
    if not csv_path.exists():
        error_console.print(f"[error]CSV file not found: {csv_path}[/]")
        raise typer.Exit(1)

    target = db_path or settings.ecdict_db_path
    console.print(f"[info]Source:[/] {csv_path}")
    console.print(f"[info]Target:[/] {target}")

    with batch_progress("Importing words", count_rows(csv_path)) as advance:
        stats: ImportStats = run_async(import_ecdict(csv_path, target, on_batch=advance))

    console.print(
        f"[success]Imported {stats.inserted:,} words[/] "
        f"[dim]({stats.skipped:,} duplicates or blank lines skipped)[/]"
    )
