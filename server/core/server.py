from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from shared.protocol.errors import OperationCancelled, ShortReadError
from shared.transport import ChannelConnection, ChannelListener, wait_cancellable

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str], None]


class InboundServer:
    """Accepts one client at a time, reads one frame from it, then hangs up."""

    def __init__(self, listener: ChannelListener, on_message: MessageCallback) -> None:
        self.listener = listener
        self.on_message = on_message
        self.received: int = 0
        self.discarded: int = 0

    async def serve(self, cancel: asyncio.Event) -> None:
        """Run until ``cancel`` is set; always releases the channel on exit."""
        await self.listener.bind()
        logger.info("Inbound loop listening on %s", self.listener.name)
        try:
            while not cancel.is_set():
                try:
                    connection = await self.listener.accept(cancel)
                except OperationCancelled:
                    break
                try:
                    await self._handle_client(connection, cancel)
                except OperationCancelled:
                    break
                finally:
                    await connection.disconnect()
        finally:
            await self.listener.close()
            logger.info("Inbound loop on %s stopped", self.listener.name)

    async def _handle_client(self, connection: ChannelConnection, cancel: asyncio.Event) -> None:
        try:
            text = await wait_cancellable(connection.read_frame(), cancel)
        except ShortReadError as exc:
            # probes and early disconnects land here
            logger.debug("Discarding partial frame on %s: %s", connection.channel, exc)
            self.discarded += 1
            return
        except OSError as exc:
            logger.debug("Client on %s dropped: %s", connection.channel, exc)
            self.discarded += 1
            return
        if text is None:
            return
        self.received += 1
        self.on_message(text)
