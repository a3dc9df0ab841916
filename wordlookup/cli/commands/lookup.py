"""One-off lookup through the full provider chain."""

import json

import typer
from rich.panel import Panel
from rich.table import Table

from wordlookup.cli.utils.async_runner import open_context, run_async
from wordlookup.cli.utils.console import console, error_console
from wordlookup.services.dictionary.base import DictionaryResponse, response_to_dict


def lookup(
    language: str = typer.Argument(..., help="Language code (en, ko, ja, de, ru, ...)"),
    word: str = typer.Argument(..., help="Word to look up"),
    json_output: bool = typer.Option(False, "--json", help="Print the raw JSON response"),
) -> None:
    """Look up a word the same way the API does."""
    response = run_async(_lookup(word, language))
    if response is None:
        error_console.print(f'[error]No definitions found for "{word}" ({language})[/]')
        raise typer.Exit(1)

    if json_output:
        console.print_json(json.dumps(response_to_dict(response), ensure_ascii=False))
        return

    render_response(response)


async def _lookup(word: str, language: str) -> DictionaryResponse | None:
    async with open_context() as context:
        return await context.lookup.lookup(word, language)


def render_response(response: DictionaryResponse) -> None:
    """Pretty-print a response."""
    header = f"[word]{response.word}[/]"
    phonetic = response.phonetics.uk or response.phonetics.us
    if phonetic:
        header += f"  [dim]/{phonetic}/[/]"

    lines = [header, ""]
    for translation in response.translations:
        prefix = f"[pos]{translation.pos}[/] " if translation.pos else ""
        lines.append(prefix + "; ".join(translation.meanings))

    if response.translations and response.definitions:
        lines.append("")

    for definition in response.definitions:
        prefix = f"[pos]{definition.part_of_speech}[/] " if definition.part_of_speech else ""
        lines.append(f"{prefix}{definition.definition}")
        if definition.example:
            lines.append(f"  [dim]{definition.example}[/]")

    console.print()
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[source]{response.source}[/]",
            border_style="blue",
        )
    )

    forms = [(label, value) for label, value in vars(response.exchange).items() if value]
    if forms:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Form", style="bold")
        table.add_column("Value")
        for label, value in forms:
            table.add_row(label.replace("_", " "), value)
        console.print(table)
    console.print()
