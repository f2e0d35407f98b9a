from __future__ import annotations

import asyncio
import codecs
import os
import select
import sys
import termios
import tty
from collections import deque
from typing import Deque, Iterator, List, Optional, TextIO

ESCAPE = "\x1b"
ENTER_KEYS = ("\n", "\r")

_CSI_PREFIXES = ("[", "O")


def split_keys(text: str) -> Iterator[str]:
    """
    Split raw terminal input into keys.

    A lone ESC is a key; ESC followed by ``[`` or ``O`` starts a cursor/function
    key sequence, which is swallowed whole.
    """
    i = 0
    while i < len(text):
        char = text[i]
        if char == ESCAPE and i + 1 < len(text) and text[i + 1] in _CSI_PREFIXES:
            i += 2
            while i < len(text) and not ("@" <= text[i] <= "~"):
                i += 1
            i += 1
            continue
        yield char
        i += 1


class KeyReader:
    """Non-blocking key poller over a cbreak-mode terminal."""

    def __init__(self, stream: Optional[TextIO] = None, poll_interval: float = 0.01) -> None:
        self.stream = stream or sys.stdin
        self.poll_interval = poll_interval
        self._pending: Deque[str] = deque()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._saved_attrs: Optional[List] = None

    def __enter__(self) -> "KeyReader":
        if self.stream.isatty():
            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        return self

    def __exit__(self, *exc_info) -> None:
        if self._saved_attrs is not None:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def poll(self) -> Optional[str]:
        """Return the next key if one is waiting, else None. Never blocks."""
        if not self._pending:
            fd = self.stream.fileno()
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready:
                return None
            chunk = os.read(fd, 1024)
            self._pending.extend(split_keys(self._decoder.decode(chunk)))
        return self._pending.popleft() if self._pending else None

    async def read_key(self) -> str:
        while True:
            key = self.poll()
            if key is not None:
                return key
            await asyncio.sleep(self.poll_interval)


__all__ = ["ESCAPE", "ENTER_KEYS", "KeyReader", "split_keys"]
