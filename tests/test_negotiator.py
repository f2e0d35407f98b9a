import asyncio

import pytest
from pydantic import ValidationError

from client.core import RoleNegotiator
from server.core import InboundServer
from shared.protocol import CHANNEL_A, CHANNEL_B, Session
from shared.protocol.errors import NegotiationError
from shared.transport import ChannelListener


@pytest.mark.asyncio
async def test_lone_instance_claims_first_channel(settings):
    session, listener = await RoleNegotiator(settings).negotiate()
    try:
        assert session.self_channel == CHANNEL_A
        assert session.peer_channel == CHANNEL_B
        assert session.greeted is False
        assert listener.bound and listener.name == CHANNEL_A
    finally:
        await listener.close()


@pytest.mark.asyncio
async def test_second_instance_claims_second_channel_and_greets(settings):
    first, first_listener = await RoleNegotiator(settings).negotiate()
    received = []
    cancel = asyncio.Event()
    serving = asyncio.create_task(InboundServer(first_listener, received.append).serve(cancel))
    await asyncio.sleep(0.01)

    second, second_listener = await RoleNegotiator(settings).negotiate()
    try:
        assert first.self_channel == CHANNEL_A
        assert second.self_channel == CHANNEL_B
        assert second.peer_channel == CHANNEL_A
        assert second.greeted is True
        assert received == ["Hello from pipe_2!"]
        assert first.self_channel != second.self_channel
    finally:
        cancel.set()
        await serving
        await second_listener.close()


@pytest.mark.asyncio
async def test_negotiation_fails_when_both_channels_are_owned(settings):
    settings.drain_timeout = 0.1
    owner_a = ChannelListener(CHANNEL_A, settings)
    owner_b = ChannelListener(CHANNEL_B, settings)
    await owner_a.bind()
    await owner_b.bind()
    try:
        with pytest.raises(NegotiationError):
            await RoleNegotiator(settings).negotiate()
    finally:
        await owner_a.close()
        await owner_b.close()


def test_session_rejects_same_channel_twice():
    with pytest.raises(ValidationError):
        Session(self_channel=CHANNEL_A, peer_channel=CHANNEL_A)
    with pytest.raises(ValidationError):
        Session(self_channel="pipe_9", peer_channel=CHANNEL_A)


def test_session_is_immutable():
    session = Session.first()
    assert session.is_first
    assert Session.second().greeting == "Hello from pipe_2!"
    with pytest.raises(ValidationError):
        session.self_channel = CHANNEL_B
