from __future__ import annotations

import asyncio
from typing import Optional

from .constants import ENCODING, LENGTH_PREFIX_SIZE, MAX_PAYLOAD_SIZE
from .errors import ShortReadError


def encode_payload(text: str) -> bytes:
    """Encode text into its wire payload (fixed-width UTF-16)."""
    return text.encode(ENCODING, errors="surrogatepass")


def decode_payload(data: bytes) -> str:
    """Decode wire payload; a dangling odd byte becomes U+FFFD."""
    return data.decode(ENCODING, errors="replace")


def encode_frame(text: str) -> bytes:
    """
    Encode text as 2-byte big-endian length + payload.

    Payloads above 65535 bytes are silently truncated.
    """
    payload = encode_payload(text)
    length = min(len(payload), MAX_PAYLOAD_SIZE)
    return bytes([length // 256, length % 256]) + payload[:length]


def read_length(prefix: bytes) -> int:
    if len(prefix) < LENGTH_PREFIX_SIZE:
        raise ShortReadError(LENGTH_PREFIX_SIZE, prefix)
    return prefix[0] * 256 + prefix[1]


def decode_frame(data: bytes) -> Optional[str]:
    """Decode one frame held in a buffer. Returns None for a zero-length frame."""
    length = read_length(data[:LENGTH_PREFIX_SIZE])
    if length == 0:
        return None
    payload = data[LENGTH_PREFIX_SIZE : LENGTH_PREFIX_SIZE + length]
    if len(payload) != length:
        raise ShortReadError(length, payload)
    return decode_payload(payload)


async def _read_exactly(reader: asyncio.StreamReader, count: int) -> bytes:
    try:
        return await reader.readexactly(count)
    except asyncio.IncompleteReadError as exc:
        raise ShortReadError(count, exc.partial) from exc


async def async_decode_frame(reader: asyncio.StreamReader) -> Optional[str]:
    """Read a single frame from the stream and decode it."""
    length = read_length(await _read_exactly(reader, LENGTH_PREFIX_SIZE))
    if length == 0:
        return None
    return decode_payload(await _read_exactly(reader, length))


__all__ = [
    "encode_payload",
    "decode_payload",
    "encode_frame",
    "decode_frame",
    "read_length",
    "async_decode_frame",
]
