"""
Named channel transport over local stream sockets.

A channel name maps to a socket path under ``Settings.channel_dir``. The
listener side accepts one client at a time, the client side connects with a
short timeout, writes, waits for the peer to consume, and closes.
"""

from __future__ import annotations

import asyncio
import contextlib
import fcntl
import logging
import os
import socket
from pathlib import Path
from typing import Awaitable, Optional, TypeVar

from shared.protocol import framing
from shared.protocol.errors import ChannelInUseError, OperationCancelled, TransportUnavailable
from shared.settings import SETTINGS, Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

LISTEN_BACKLOG = 1
LOCK_SUFFIX = ".lock"


async def wait_cancellable(awaitable: Awaitable[T], cancel: Optional[asyncio.Event] = None) -> T:
    """Await ``awaitable`` unless ``cancel`` fires first, in which case raise OperationCancelled."""
    task = asyncio.ensure_future(awaitable)
    if cancel is None:
        return await task
    if cancel.is_set():
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise OperationCancelled()

    stopper = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
    if task in done:
        return task.result()
    raise OperationCancelled()


def lock_path_for(path: Path) -> Path:
    return path.with_name(path.name + LOCK_SUFFIX)


async def _is_live(path: Path, timeout: float) -> bool:
    try:
        _, writer = await asyncio.wait_for(asyncio.open_unix_connection(str(path)), timeout)
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    with contextlib.suppress(OSError):
        await writer.wait_closed()
    return True


class ChannelConnection:
    """Server side of one accepted client."""

    def __init__(self, channel: str, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.channel = channel
        self.reader = reader
        self.writer = writer

    async def read_frame(self) -> Optional[str]:
        return await framing.async_decode_frame(self.reader)

    async def disconnect(self) -> None:
        """Drop the client; the listener stays bound."""
        self.writer.close()
        with contextlib.suppress(OSError):
            await self.writer.wait_closed()


class ChannelListener:
    """
    Owns the socket path for one channel name for the lifetime of a session.

    The claim is an exclusive ``flock`` on ``<path>.lock``, taken before the
    path is inspected and held until ``close``. Only the lock holder may unlink
    or bind the socket path, so a half-bound owner is never evicted.
    """

    def __init__(self, name: str, settings: Optional[Settings] = None) -> None:
        self.name = name
        self.settings = settings or SETTINGS
        self.path = self.settings.channel_path(name)
        self.lock_path = lock_path_for(self.path)
        self._sock: Optional[socket.socket] = None
        self._lock_fd: Optional[int] = None

    @property
    def bound(self) -> bool:
        return self._sock is not None

    def _acquire_lock(self) -> None:
        try:
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as exc:
            raise ChannelInUseError(f"cannot open lock for {self.name}: {exc}") from exc
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            os.close(fd)
            raise ChannelInUseError(f"channel {self.name} is claimed by another process") from exc
        self._lock_fd = fd

    def _release_lock(self) -> None:
        if self._lock_fd is None:
            return
        os.close(self._lock_fd)  # closing drops the flock
        self._lock_fd = None

    async def bind(self) -> None:
        if self.bound:
            return
        self._acquire_lock()
        try:
            await self._bind_locked()
        except BaseException:
            self._release_lock()
            raise
        logger.info("Channel %s bound at %s", self.name, self.path)

    async def _bind_locked(self) -> None:
        if self.path.exists():
            if not self.path.is_socket():
                raise ChannelInUseError(f"{self.path} exists and is not a socket")
            if await _is_live(self.path, self.settings.connect_timeout):
                raise ChannelInUseError(f"channel {self.name} already has an owner")
            logger.info("Removing stale channel socket %s", self.path)
            self.path.unlink(missing_ok=True)

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(self.path))
            sock.listen(LISTEN_BACKLOG)
            sock.setblocking(False)
        except OSError as exc:
            sock.close()
            raise ChannelInUseError(f"cannot bind {self.name}: {exc}") from exc
        self._sock = sock

    async def accept(self, cancel: Optional[asyncio.Event] = None) -> ChannelConnection:
        if self._sock is None:
            raise TransportUnavailable(f"channel {self.name} is not bound")
        loop = asyncio.get_running_loop()
        conn, _ = await wait_cancellable(loop.sock_accept(self._sock), cancel)
        reader, writer = await asyncio.open_unix_connection(sock=conn)
        return ChannelConnection(self.name, reader, writer)

    async def close(self) -> None:
        if self._sock is None:
            return
        self._sock.close()
        self._sock = None
        self.path.unlink(missing_ok=True)
        # the lock file itself stays; unlinking it would let two claimants lock different inodes
        self._release_lock()
        logger.info("Channel %s closed", self.name)


class ChannelClient:
    """Short-lived outbound connection to a peer's channel."""

    def __init__(self, name: str, settings: Optional[Settings] = None) -> None:
        self.name = name
        self.settings = settings or SETTINGS
        self.path = self.settings.channel_path(name)
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    @property
    def connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def connect(self, timeout_ms: Optional[int] = None, cancel: Optional[asyncio.Event] = None) -> None:
        timeout = (timeout_ms or self.settings.connect_timeout_ms) / 1000.0
        try:
            self.reader, self.writer = await wait_cancellable(
                asyncio.wait_for(asyncio.open_unix_connection(str(self.path)), timeout), cancel
            )
        except asyncio.TimeoutError as exc:
            raise TransportUnavailable(f"connect to {self.name} timed out") from exc
        except OSError as exc:
            raise TransportUnavailable(f"connect to {self.name} failed: {exc}") from exc

    def write(self, data: bytes) -> None:
        if self.writer is None:
            raise TransportUnavailable(f"not connected to {self.name}")
        self.writer.write(data)

    async def drain(self, timeout: Optional[float] = None, cancel: Optional[asyncio.Event] = None) -> None:
        """Block until the peer has read the frame and hung up."""
        if self.writer is None or self.reader is None:
            raise TransportUnavailable(f"not connected to {self.name}")
        timeout = timeout or self.settings.drain_timeout
        try:
            await wait_cancellable(self.writer.drain(), cancel)
            if self.writer.can_write_eof():
                self.writer.write_eof()
            await wait_cancellable(asyncio.wait_for(self.reader.read(), timeout), cancel)
        except asyncio.TimeoutError as exc:
            raise TransportUnavailable(f"{self.name} did not drain within {timeout}s") from exc
        except OSError as exc:
            raise TransportUnavailable(f"write to {self.name} failed: {exc}") from exc

    async def close(self) -> None:
        if self.writer is None:
            return
        writer, self.writer, self.reader = self.writer, None, None
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()


__all__ = [
    "LISTEN_BACKLOG",
    "LOCK_SUFFIX",
    "ChannelClient",
    "ChannelConnection",
    "ChannelListener",
    "lock_path_for",
    "wait_cancellable",
]
