"""Rich consoles for command-line output.

Server-provided text (titles, playlist names, ACK messages) is printed
verbatim: names like "[live] Set" would otherwise be parsed as Rich markup.
"""

from rich.console import Console

_consoles: dict[bool, Console] = {}


def get_console(stderr: bool = False) -> Console:
    """Get or create the shared Console for stdout or stderr."""
    console = _consoles.get(stderr)
    if console is None:
        console = Console(stderr=stderr, highlight=False)
        _consoles[stderr] = console
    return console


def safe_print(message: str, style: str | None = None, stderr: bool = False) -> None:
    """Print text without markup parsing or wrapping.

    Args:
        message: The text to print
        style: Optional Rich style string (e.g., "bold red", "green")
        stderr: Print to stderr instead of stdout
    """
    get_console(stderr).print(message, style=style, markup=False, soft_wrap=True)


def print_error(message: str) -> None:
    safe_print(f"Error: {message}", style="red", stderr=True)
