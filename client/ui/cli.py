from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from client.core import OutboundSender
from shared.protocol import Session
from shared.settings import SETTINGS, Settings

from .console import ChatConsole
from .keyboard import ENTER_KEYS, ESCAPE

logger = logging.getLogger(__name__)


class KeySource(Protocol):
    def poll(self) -> Optional[str]: ...


class ChatCLI:
    """Feeds keystrokes to the peer one message per key until ESC is pressed."""

    def __init__(
        self,
        session: Session,
        sender: OutboundSender,
        keys: KeySource,
        console: ChatConsole,
        cancel: asyncio.Event,
        settings: Optional[Settings] = None,
    ) -> None:
        self.session = session
        self.sender = sender
        self.keys = keys
        self.console = console
        self.cancel = cancel
        self.settings = settings or SETTINGS

    async def run(self) -> None:
        logger.info("Keyboard loop started for %s -> %s", self.session.self_channel, self.session.peer_channel)
        while not self.cancel.is_set():
            key = self.keys.poll()
            if key is None:
                await asyncio.sleep(self.settings.poll_interval)
                continue
            await self.handle_key(key)

    async def handle_key(self, key: str) -> None:
        if key == ESCAPE:
            self.cancel.set()
            return
        if key in ENTER_KEYS:
            self.console.newline()
            await self._send("\n")
            return
        self.console.show_local(key)
        await self._send(key)

    async def _send(self, message: str) -> None:
        if not await self.sender.send(message, self.cancel):
            logger.debug("Peer %s not listening", self.session.peer_channel)
