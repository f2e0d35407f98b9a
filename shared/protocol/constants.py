"""Protocol-wide constants shared by the inbound and outbound sides."""

CHANNEL_A = "pipe_1"
CHANNEL_B = "pipe_2"
CHANNELS = (CHANNEL_A, CHANNEL_B)

ENCODING = "utf-16-le"
LENGTH_PREFIX_SIZE = 2
MAX_PAYLOAD_SIZE = 0xFFFF  # largest value a uint16 prefix can carry

DEFAULT_CONNECT_TIMEOUT_MS = 10  # only sane for same-machine channels
GREETING_TEMPLATE = "Hello from {channel}!"

__all__ = [
    "CHANNEL_A",
    "CHANNEL_B",
    "CHANNELS",
    "ENCODING",
    "LENGTH_PREFIX_SIZE",
    "MAX_PAYLOAD_SIZE",
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "GREETING_TEMPLATE",
]
