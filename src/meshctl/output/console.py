"""Rich Console factory for progress output.

Progress goes to stderr so stdout stays clean for the result (and for
``--json`` consumers).  In non-TTY environments (tests, pipes) the
spinner is skipped entirely.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.theme import Theme

MESHCTL_THEME = Theme(
    {
        "meshctl.status": "bold cyan",
    }
)


def create_console(*, stderr: bool = True) -> Console:
    return Console(stderr=stderr, theme=MESHCTL_THEME, highlight=False)


@contextmanager
def spinner(message: str, *, enabled: bool = True) -> Iterator[None]:
    """Show a status spinner on stderr while the block runs."""
    console = create_console()
    if not (enabled and console.is_terminal):
        yield
        return
    with console.status(f"[meshctl.status]{message}[/]", spinner="dots"):
        yield
