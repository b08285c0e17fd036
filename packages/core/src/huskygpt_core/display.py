"""Terminal spinners built on rich."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.text import Text

console = Console()

_SPINNER = "dots"


class ReviewSpinner:
    """Two-state progress indicator: running, then succeed or fail."""

    def __init__(self, text: str, console: Console = console):
        self.text = text
        self.console = console
        self._status = None

    def start(self) -> "ReviewSpinner":
        self._status = self.console.status(Text(self.text), spinner=_SPINNER)
        self._status.start()
        return self

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def update(self, text) -> None:
        if self._status is not None:
            self._status.update(text)

    def succeed(self, text: str) -> None:
        self._stop()
        self.console.print(Text.assemble(("✔ ", "bold green"), text))

    def fail(self, text: str) -> None:
        self._stop()
        self.console.print(Text.assemble(("✖ ", "bold red"), text))


class TypingSpinner:
    """Reveal a message character by character, then mark it passed or failed."""

    def __init__(self, delay: float = 0.01, console: Console = console):
        self.delay = delay
        self.console = console

    async def run(self, text: str, status: str) -> None:
        spinner = ReviewSpinner("", console=self.console).start()
        typed = Text()
        for char in text:
            typed.append(char)
            spinner.update(typed)
            await asyncio.sleep(self.delay)
        if status == "succeed":
            spinner.succeed(text)
        else:
            spinner.fail(text)
