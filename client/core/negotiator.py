from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from shared.protocol import CHANNEL_A, Session
from shared.protocol.errors import ChannelInUseError, NegotiationError
from shared.settings import SETTINGS, Settings
from shared.transport import ChannelListener

from .network import OutboundSender

logger = logging.getLogger(__name__)


class RoleNegotiator:
    """
    Decides which of the two well-known channels this instance owns.

    A probe connect to ``pipe_1`` stands in for a lock: if nobody answers we
    take ``pipe_1``; if someone does we take ``pipe_2`` and greet them. Two
    instances started inside the same connect timeout can both miss each
    other; the listener bind is then the only thing that can refuse the
    second claim.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or SETTINGS

    async def negotiate(self, cancel: Optional[asyncio.Event] = None) -> Tuple[Session, ChannelListener]:
        if await OutboundSender(CHANNEL_A, self.settings).probe(cancel):
            pending = Session.second()
            greeted = await OutboundSender(pending.peer_channel, self.settings).send(pending.greeting, cancel)
            if not greeted:
                logger.warning("Greeting to %s was not delivered", pending.peer_channel)
            session = Session.second(greeted=greeted)
        else:
            session = Session.first()
        logger.info("Claiming %s, peer is %s", session.self_channel, session.peer_channel)

        listener = ChannelListener(session.self_channel, self.settings)
        try:
            await listener.bind()
        except ChannelInUseError as exc:
            logger.warning("Negotiation failed: %s", exc)
            raise NegotiationError(f"cannot claim {session.self_channel}: {exc.message}") from exc
        return session, listener


__all__ = ["RoleNegotiator"]
