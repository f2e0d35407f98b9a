from __future__ import annotations

import asyncio
import logging
from typing import Optional

from shared.protocol import framing
from shared.protocol.errors import OperationCancelled, TransportUnavailable
from shared.settings import SETTINGS, Settings
from shared.transport import ChannelClient

logger = logging.getLogger(__name__)


class OutboundSender:
    """Delivers one message per fresh connection to the peer's channel."""

    def __init__(self, channel: str, settings: Optional[Settings] = None) -> None:
        self.channel = channel
        self.settings = settings or SETTINGS
        self.sent: int = 0
        self.failed: int = 0

    async def send(self, message: Optional[str], cancel: Optional[asyncio.Event] = None) -> bool:
        """
        Connect, write one frame, wait for drain, close.

        ``None`` or ``""`` only probes the channel: connect then disconnect.
        Returns False when the peer is not reachable; never raises transport errors.
        """
        client = ChannelClient(self.channel, self.settings)
        try:
            await client.connect(cancel=cancel)
            if message:
                client.write(framing.encode_frame(message))
                await client.drain(cancel=cancel)
                self.sent += 1
            return True
        except TransportUnavailable as exc:
            logger.debug("Send to %s failed: %s", self.channel, exc)
            self.failed += 1
            return False
        except OperationCancelled:
            logger.debug("Send to %s cancelled", self.channel)
            return False
        finally:
            await client.close()

    async def probe(self, cancel: Optional[asyncio.Event] = None) -> bool:
        return await self.send(None, cancel)


__all__ = ["OutboundSender"]
