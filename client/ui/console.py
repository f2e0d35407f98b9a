from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.text import Text

from shared.protocol import Session

RULE = "-" * 60
LOCAL_STYLE = "yellow"
REMOTE_STYLE = "green"


class ChatConsole:
    """Renders local keystrokes and remote text, breaking lines when the origin flips."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.last_output_was_local: Optional[bool] = None

    def show_remote(self, text: str) -> None:
        if self.last_output_was_local:
            self.console.print()
        self.console.print(Text(text, style=REMOTE_STYLE), end="")
        self.last_output_was_local = False

    def show_local(self, text: str) -> None:
        if self.last_output_was_local is False:
            self.console.print()
        self.console.print(Text(text, style=LOCAL_STYLE), end="")
        self.last_output_was_local = True

    def newline(self) -> None:
        self.console.print()

    def searching(self) -> None:
        self.console.clear()
        self.last_output_was_local = None
        self.console.print("Searching for another instance...")

    def banner(self, session: Session) -> None:
        self.console.print(f"Server name for this instance: {session.self_channel}")
        self.console.print("Type something and press Enter, or press ESC to quit.")
        self.console.print(f"{RULE}\n")

    def closed(self) -> None:
        self.console.print(f"\n\n{RULE}")
        self.console.print("Pipe closed.\n\nPress ESC again to exit, or another key to reset.")

    def startup_failed(self, reason: str) -> None:
        self.console.print(f"Startup failed: {reason}")
        self.console.print("Press ESC to exit, or another key to retry.")


__all__ = ["ChatConsole", "RULE", "LOCAL_STYLE", "REMOTE_STYLE"]
