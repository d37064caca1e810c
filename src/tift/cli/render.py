"""CLI renderer for tift."""

import threading

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape

from tift.messages import Word
from tift.session import MessageEntry
from tift.storage import UISettings

_STYLES = {
    "dark": {"command": "bold cyan", "info": "dim", "warn": "yellow", "error": "bold red", "alert": "bold magenta"},
    "light": {"command": "bold blue", "info": "grey50", "warn": "dark_orange", "error": "red", "alert": "magenta"},
}


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self.ui_settings = UISettings()
        self._prompt_session: PromptSession[str] | None = None
        self._print_lock = threading.Lock()

    def welcome(self, title: str) -> None:
        """Render welcome message."""
        self._print(f"[bold]{escape(title)}[/bold] [dim](type 'quit' to leave)[/dim]")

    def entry(self, entry: MessageEntry) -> None:
        """Render one scroll-back entry."""
        styles = _STYLES[self.ui_settings.colour_scheme]
        text = escape(entry.text)
        if entry.kind == "command":
            self._print(f"[{styles['command']}]> {text}[/{styles['command']}]")
        elif entry.kind == "alert":
            self._print(f"[{styles['alert']}]{text}[/{styles['alert']}]")
        elif entry.kind == "log":
            style = styles.get(entry.level or "info", styles["info"])
            self._print(f"[{style}]{text}[/{style}]")
        elif self.ui_settings.ui_type == "bubble":
            self._print(f"  {text}")
        else:
            self._print(text)

    def warn(self, message: str) -> None:
        style = _STYLES[self.ui_settings.colour_scheme]["warn"]
        self._print(f"[{style}]{escape(message)}[/{style}]")

    def error(self, message: str) -> None:
        """Render an error message."""
        self._print(f"[bold red]Error:[/bold red] {escape(message)}")

    async def get_user_input(self, words: list[Word]) -> str:
        """Prompt for a command, completing on the words on offer."""
        completer = WordCompleter([word.value for word in words], sentence=True)
        with patch_stdout(raw=True):
            return await self._session().prompt_async("> ", completer=completer)

    async def ask(self, question: str) -> str:
        with patch_stdout(raw=True):
            return await self._session().prompt_async(question)

    def _session(self) -> PromptSession[str]:
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        return self._prompt_session

    def _print(self, message: str) -> None:
        with self._print_lock:
            self.console.print(message)


def create_cli_renderer() -> Renderer:
    """Create and return a Renderer instance."""
    return Renderer()
