from __future__ import annotations

from rich.console import Console


class ConsoleProgressNotifier:
    """Prints the running count of synced transactions to the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)
        self.last_count = 0

    def notify(self, session_count: int) -> None:
        self.last_count = session_count
        self._console.print(
            f"[cyan]Synced {session_count} new transactions...[/cyan]",
            highlight=False,
        )
