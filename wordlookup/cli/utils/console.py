"""Rich console configuration."""

from rich.console import Console
from rich.theme import Theme

custom_theme = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "word": "magenta",
        "pos": "blue",
        "source": "bright_black",
        "dim": "dim",
    }
)

console = Console(theme=custom_theme)

# stderr, for errors only
error_console = Console(theme=custom_theme, stderr=True)
