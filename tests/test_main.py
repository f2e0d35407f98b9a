import asyncio
import io
from collections import deque

import pytest
from rich.console import Console

from client.main import run_session
from client.ui import ChatConsole
from client.ui.keyboard import ESCAPE
from shared.protocol import CHANNEL_A, CHANNEL_B
from shared.transport import ChannelListener


class ScriptedKeys:
    def __init__(self, keys):
        self._keys = deque(keys)

    def poll(self):
        return self._keys.popleft() if self._keys else None


@pytest.fixture
def chat():
    buffer = io.StringIO()
    console = ChatConsole(Console(file=buffer, color_system=None, width=200))
    console.buffer = buffer
    return console


@pytest.mark.asyncio
async def test_session_runs_until_escape_and_releases_channel(settings, chat):
    ok = await asyncio.wait_for(run_session(settings, chat, ScriptedKeys([ESCAPE])), 2.0)
    out = chat.buffer.getvalue()
    assert ok is True
    assert "Searching for another instance..." in out
    assert "Server name for this instance: pipe_1" in out
    assert "Pipe closed." in out
    assert not settings.channel_path(CHANNEL_A).exists()


@pytest.mark.asyncio
async def test_session_reports_startup_failure(settings, chat):
    settings.drain_timeout = 0.1
    owners = [ChannelListener(CHANNEL_A, settings), ChannelListener(CHANNEL_B, settings)]
    for owner in owners:
        await owner.bind()
    try:
        ok = await asyncio.wait_for(run_session(settings, chat, ScriptedKeys([ESCAPE])), 2.0)
    finally:
        for owner in owners:
            await owner.close()
    assert ok is False
    assert "Startup failed" in chat.buffer.getvalue()
