"""Main CLI application entry point."""

import sys

import typer

from wordlookup.cli.commands import cache, import_ecdict, lookup, serve, status
from wordlookup.config import settings
from wordlookup.logging_config import setup_logging

app = typer.Typer(
    name="wordlookup",
    help="Dictionary lookup service over local dictionaries with a remote fallback",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def startup(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show lookup trace logs"),
) -> None:
    """Initialize application on startup."""
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(level=None if verbose else "WARNING", stream=sys.stderr)


app.command(name="serve", help="Run the HTTP API server")(serve.serve)

app.command(name="lookup", help="Look up a word through the provider chain")(lookup.lookup)

app.command(name="status", help="Show providers and cache status")(status.status)

app.add_typer(cache.app, name="cache")

app.command(name="import-ecdict", help="Build the ECDICT database from stardict.csv")(
    import_ecdict.import_ecdict_command
)


if __name__ == "__main__":
    app()
