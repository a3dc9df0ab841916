"""CLI utility modules."""

from wordlookup.cli.utils.async_runner import open_context, run_async
from wordlookup.cli.utils.console import console, error_console
from wordlookup.cli.utils.progress import batch_progress

__all__ = ["batch_progress", "console", "error_console", "open_context", "run_async"]
