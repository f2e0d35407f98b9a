from .server import InboundServer, MessageCallback

__all__ = ["InboundServer", "MessageCallback"]
