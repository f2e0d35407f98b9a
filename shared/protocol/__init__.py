"""
Shared protocol package: channel constants, the length-prefixed frame codec,
the session model and the error taxonomy used by both loops.
"""

from .constants import (
    CHANNEL_A,
    CHANNEL_B,
    CHANNELS,
    DEFAULT_CONNECT_TIMEOUT_MS,
    ENCODING,
    GREETING_TEMPLATE,
    LENGTH_PREFIX_SIZE,
    MAX_PAYLOAD_SIZE,
)
from .errors import (
    ChannelInUseError,
    ConfigError,
    ErrorCode,
    NegotiationError,
    OperationCancelled,
    PipeChatError,
    ShortReadError,
    TransportUnavailable,
)
from .framing import async_decode_frame, decode_frame, decode_payload, encode_frame, encode_payload
from .messages import Session

__all__ = [
    "CHANNEL_A",
    "CHANNEL_B",
    "CHANNELS",
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "ENCODING",
    "GREETING_TEMPLATE",
    "LENGTH_PREFIX_SIZE",
    "MAX_PAYLOAD_SIZE",
    "ErrorCode",
    "PipeChatError",
    "ShortReadError",
    "TransportUnavailable",
    "ChannelInUseError",
    "NegotiationError",
    "ConfigError",
    "OperationCancelled",
    "encode_frame",
    "decode_frame",
    "encode_payload",
    "decode_payload",
    "async_decode_frame",
    "Session",
]
