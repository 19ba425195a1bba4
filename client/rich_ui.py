from __future__ import annotations

from typing import Optional
from rich.console import Console
from rich.text import Text

from .errors import error_chain


class RichUI:
    """Rich error messages for the CLI.

    Writes to stderr so stdout only ever carries command output.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(stderr=True)

    def show_error(self, message: str) -> None:
        self.console.print(Text(f"✗ {message}", style="red"))

    def show_error_chain(self, exc: BaseException) -> None:
        messages = list(error_chain(exc))
        self.show_error(messages[0])
        for cause in messages[1:]:
            self.console.print(Text(f"  caused by: {cause}", style="dim"))
