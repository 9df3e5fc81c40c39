"""Interactive console prompts"""

from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from settings import APP_CONSOLE_URL


class ConsoleApiKeyPrompt:
    """Ask the user for a Dropbox app key on the terminal"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self) -> str:
        self.console.print(f"Create a Dropbox App at [cyan]{APP_CONSOLE_URL}[/cyan].")
        return Prompt.ask(
            "Enter the API Key (or 'Quit' to exit)",
            console=self.console,
            default="",
            show_default=False,
        )
