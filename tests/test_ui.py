import asyncio
import io
import os
from collections import deque

import pytest
from rich.console import Console

from client.ui import ChatCLI, ChatConsole, KeyReader
from client.ui.keyboard import ESCAPE, split_keys
from shared.protocol import Session


def _console():
    buffer = io.StringIO()
    return ChatConsole(Console(file=buffer, color_system=None, width=200, soft_wrap=True)), buffer


class FakeKeys:
    def __init__(self, keys):
        self._keys = deque(keys)

    def poll(self):
        return self._keys.popleft() if self._keys else None


class FakeSender:
    def __init__(self, result=True):
        self.result = result
        self.messages = []

    async def send(self, message, cancel=None):
        self.messages.append(message)
        return self.result


def test_origin_switch_starts_new_line():
    chat, buffer = _console()
    chat.show_remote("Hello from pipe_2!")
    chat.show_local("h")
    chat.show_local("i")
    chat.show_remote("yo")
    chat.show_remote("!")
    assert buffer.getvalue() == "Hello from pipe_2!\nhi\nyo!"
    assert chat.last_output_was_local is False


def test_banner_names_this_instance():
    chat, buffer = _console()
    chat.banner(Session.first())
    out = buffer.getvalue()
    assert "Server name for this instance: pipe_1" in out
    assert "-" * 60 in out


def test_split_keys_drops_cursor_sequences():
    assert list(split_keys("ab\x1b[Ac\x1bOP\x1b")) == ["a", "b", "c", ESCAPE]
    assert list(split_keys("\x1b[1;5C\n")) == ["\n"]


def test_key_reader_polls_without_blocking():
    read_fd, write_fd = os.pipe()
    with os.fdopen(read_fd) as stream, KeyReader(stream) as keys:
        assert keys.poll() is None
        os.write(write_fd, "hé\x1b".encode("utf-8"))
        assert [keys.poll(), keys.poll(), keys.poll()] == ["h", "é", ESCAPE]
        assert keys.poll() is None
    os.close(write_fd)


@pytest.mark.asyncio
async def test_cli_sends_each_key_and_stops_on_escape(settings):
    chat, buffer = _console()
    sender = FakeSender()
    cancel = asyncio.Event()
    keys = FakeKeys(["h", "i", "\n", ESCAPE, "z"])
    cli = ChatCLI(Session.first(), sender, keys, chat, cancel, settings)

    await asyncio.wait_for(cli.run(), 1.0)

    assert cancel.is_set()
    assert sender.messages == ["h", "i", "\n"]
    assert buffer.getvalue() == "hi\n"
    assert keys.poll() == "z"


@pytest.mark.asyncio
async def test_cli_keeps_going_when_peer_is_absent(settings):
    chat, buffer = _console()
    sender = FakeSender(result=False)
    cancel = asyncio.Event()
    cli = ChatCLI(Session.second(), sender, FakeKeys(["a", "b", ESCAPE]), chat, cancel, settings)
    await asyncio.wait_for(cli.run(), 1.0)
    assert sender.messages == ["a", "b"]
    assert buffer.getvalue() == "ab"
