from functools import cache

from rich.console import Console as _Console
from rich.theme import Theme


class Console(_Console):
    def error(self, text: str) -> None:
        self.print(f"[error]{text}[/]")

    def success(self, text: str) -> None:
        self.print(f"[success]{text}[/]")


DEFAULT_THEME = Theme({"error": "red", "success": "green", "accent": "cyan"})


@cache
def get_console() -> Console:
    return Console(theme=DEFAULT_THEME)
