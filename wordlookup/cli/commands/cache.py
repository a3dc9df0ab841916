"""Cache administration commands."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import typer
from rich.table import Table

from wordlookup.cli.utils.async_runner import run_async
from wordlookup.cli.utils.console import console, error_console
from wordlookup.config import settings
from wordlookup.database import cache_database_url, create_cache_engine
from wordlookup.exceptions import CacheBackendError
from wordlookup.services.dictionary.cache import CacheService

app = typer.Typer(
    name="cache",
    help="Lookup cache commands",
    no_args_is_help=True,
)


@asynccontextmanager
async def open_cache() -> AsyncIterator[CacheService]:
    """Open the configured cache outside the server process."""
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    engine = create_cache_engine(cache_database_url(settings.cache_db_path))
    cache = CacheService(engine, default_ttl_days=settings.cache_default_ttl_days)
    await cache.startup()
    try:
        yield cache
    finally:
        await cache.close()


def _format_ms(value: int) -> str:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@app.command(name="info")
def cache_info(
    language: str = typer.Argument(..., help="Language code"),
    word: str = typer.Argument(..., help="Cached word"),
) -> None:
    """Show metadata for a cache entry without counting a hit."""
    run_async(_cache_info(word, language))


async def _cache_info(word: str, language: str) -> None:
    async with open_cache() as cache:
        entry = await cache.get_cache_info(word, language)

    if entry is None:
        error_console.print(f'[warning]No cache entry for "{word}" ({language})[/]')
        raise typer.Exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Label", style="bold")
    table.add_column("Value")
    table.add_row("Key", entry.key)
    table.add_row("Hits", str(entry.hit_count))
    table.add_row("Created", _format_ms(entry.created_at))
    table.add_row("Last hit", _format_ms(entry.last_hit_at))
    table.add_row("Expires", _format_ms(entry.expires_at))
    console.print(table)


@app.command(name="delete")
def cache_delete(
    language: str = typer.Argument(..., help="Language code"),
    word: str = typer.Argument(..., help="Cached word"),
) -> None:
    """Evict one cache entry."""
    deleted = run_async(_cache_delete(word, language))
    if deleted:
        console.print(f'[success]Deleted cache entry for "{word}" ({language})[/]')
    else:
        console.print(f'[dim]No cache entry for "{word}" ({language})[/]')


async def _cache_delete(word: str, language: str) -> bool:
    async with open_cache() as cache:
        return await cache.delete_cached(word, language)


@app.command(name="ttl")
def cache_ttl(
    days: int | None = typer.Argument(None, help="New TTL in days; omit to show the current one"),
) -> None:
    """Show or change the TTL applied to new cache entries."""
    if days is not None and days <= 0:
        error_console.print("[error]TTL must be a positive number of days[/]")
        raise typer.Exit(1)

    try:
        current = run_async(_cache_ttl(days))
    except CacheBackendError as e:
        error_console.print(f"[error]{e}[/]")
        raise typer.Exit(1) from None

    console.print(f"Cache TTL: [info]{current} days[/]")


async def _cache_ttl(days: int | None) -> int:
    async with open_cache() as cache:
        if days is not None:
            await cache.set_ttl_days(days)
        return await cache.get_ttl_days()


@app.command(name="cleanup")
def cache_cleanup() -> None:
    """Remove expired cache entries."""
    removed = run_async(_cache_cleanup())
    console.print(f"[success]Removed {removed} expired entries[/]")


async def _cache_cleanup() -> int:
    async with open_cache() as cache:
        return await cache.cleanup_expired()
