from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Failure classes raised across the channel stack."""

    SHORT_READ = 1001
    TRANSPORT_UNAVAILABLE = 1002
    CHANNEL_IN_USE = 1003
    NEGOTIATION_FAILED = 1004
    CONFIG_INVALID = 1005


class PipeChatError(Exception):
    """Structured exception carrying an error code + message."""

    code: ErrorCode = ErrorCode.TRANSPORT_UNAVAILABLE

    def __init__(self, message: str = "", code: ErrorCode | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(f"{self.code.name} ({int(self.code)}): {message}")


class ShortReadError(PipeChatError):
    """The stream ended before a full frame was read."""

    code = ErrorCode.SHORT_READ

    def __init__(self, expected: int, partial: bytes = b"") -> None:
        self.expected = expected
        self.partial = partial
        super().__init__(f"expected {expected} bytes, got {len(partial)}")


class TransportUnavailable(PipeChatError):
    """No peer is reachable on the channel right now."""

    code = ErrorCode.TRANSPORT_UNAVAILABLE


class ChannelInUseError(PipeChatError):
    code = ErrorCode.CHANNEL_IN_USE


class NegotiationError(PipeChatError):
    """This instance could not claim its channel."""

    code = ErrorCode.NEGOTIATION_FAILED


class ConfigError(PipeChatError):
    code = ErrorCode.CONFIG_INVALID


class OperationCancelled(Exception):
    """The shared cancel event fired while waiting. Not a failure."""


__all__ = [
    "ErrorCode",
    "PipeChatError",
    "ShortReadError",
    "TransportUnavailable",
    "ChannelInUseError",
    "NegotiationError",
    "ConfigError",
    "OperationCancelled",
]
