"""Async helpers for CLI commands."""

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from wordlookup.config import settings
from wordlookup.context import AppContext, build_context

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine from synchronous CLI code."""
    return asyncio.run(coro)


@asynccontextmanager
async def open_context() -> AsyncIterator[AppContext]:
    """Build the full provider chain for a one-off command and close it afterwards."""
    context = await build_context(settings)
    try:
        yield context
    finally:
        await context.close()
