from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from typing import Optional

from client.core import OutboundSender, RoleNegotiator
from client.ui import ChatCLI, ChatConsole, KeyReader
from client.ui.keyboard import ESCAPE
from server.core import InboundServer
from shared.protocol.errors import ConfigError, NegotiationError
from shared.settings import Settings, load_settings

logger = logging.getLogger(__name__)


async def run_session(settings: Settings, console: ChatConsole, keys: KeyReader) -> bool:
    """Negotiate, then run the inbound and keyboard loops until ESC. False if negotiation failed."""
    console.searching()
    cancel = asyncio.Event()
    try:
        session, listener = await RoleNegotiator(settings).negotiate(cancel)
    except NegotiationError as exc:
        console.startup_failed(exc.message)
        return False

    console.banner(session)
    server = InboundServer(listener, console.show_remote)
    cli = ChatCLI(session, OutboundSender(session.peer_channel, settings), keys, console, cancel, settings)
    tasks = [
        asyncio.create_task(server.serve(cancel), name="inbound-loop"),
        asyncio.create_task(cli.run(), name="keyboard-loop"),
    ]
    try:
        await asyncio.gather(*tasks)
    finally:
        cancel.set()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    console.closed()
    logger.info("Session %s closed (%s received)", session.self_channel, server.received)
    return True


async def run_client(settings: Settings, console: Optional[ChatConsole] = None) -> None:
    console = console or ChatConsole()
    with KeyReader(poll_interval=settings.poll_interval) as keys:
        while True:
            await run_session(settings, console, keys)
            if await keys.read_key() == ESCAPE:
                break


def main() -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Invalid configuration: {exc.message}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.log_level, filename=settings.log_file or None)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_client(settings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
