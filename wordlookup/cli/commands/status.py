"""Status command for displaying providers and cache state."""

from rich.panel import Panel
from rich.table import Table

from wordlookup.cli.utils.async_runner import open_context, run_async
from wordlookup.cli.utils.console import console
from wordlookup.config import settings


def status() -> None:
    """Show provider availability and cache statistics."""
    run_async(_status())


async def _status() -> None:
    """Async implementation of status command."""
    async with open_context() as context:
        providers = context.registry.get_all()
        descriptors = context.lazy_manager.descriptors
        cache_ready = context.cache.ready
        cache_entries = await context.cache.stats()
        ttl_days = await context.cache.get_ttl_days()
        ecdict_words = context.ecdict_word_count

    provider_table = Table(box=None, padding=(0, 2))
    provider_table.add_column("Name", style="bold")
    provider_table.add_column("Display Name")
    provider_table.add_column("Languages")
    provider_table.add_column("Status", justify="right")
    for provider in providers:
        provider_table.add_row(
            provider.name,
            provider.display_name,
            ", ".join(provider.supported_languages),
            "[green]Available[/]" if provider.is_available() else "[red]Unavailable[/]",
        )
    for descriptor in descriptors:
        provider_table.add_row(
            descriptor.name,
            descriptor.display_name,
            ", ".join(descriptor.supported_languages),
            "[yellow]On demand[/]",
        )

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_column("Label", style="bold")
    info_table.add_column("Value", justify="right")
    info_table.add_row("ECDICT words", f"{ecdict_words:,}")
    info_table.add_row("Cache", "[green]Ready[/]" if cache_ready else "[red]Disabled[/]")
    info_table.add_row("Cache entries", str(cache_entries))
    info_table.add_row("Cache TTL", f"{ttl_days} days")
    info_table.add_row(
        "Local dictionaries",
        "[yellow]Disabled[/]" if settings.disable_local_dicts else "[green]Enabled[/]",
    )

    console.print()
    console.print(Panel(provider_table, title="[bold]Providers[/]", border_style="blue"))
    console.print(Panel(info_table, title="[bold]Service[/]", border_style="blue"))
    console.print()
