"""Rich progress bars for long-running CLI work."""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from wordlookup.cli.utils.console import console


@contextmanager
def batch_progress(description: str, total: int) -> Iterator[Callable[[int], None]]:
    """
    Show a progress bar for work reported in batches.

    Yields a callback taking the number of rows just written. The bar is
    completed on exit, since `total` is only an estimate from the line count.
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )
    with progress:
        task = progress.add_task(description, total=total)
        yield lambda count: progress.advance(task, count)
        progress.update(task, completed=total)
