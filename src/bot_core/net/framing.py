# src/bot_core/net/framing.py
"""
Wire framing shared by the bridge transport.

Each message is one UTF-8 JSON object followed by "\n":

    {"type": "block_dig", "payload": {"status": "start", "x": 1, ...}}

LineDecoder is incremental: feed() accepts whatever bytes a non-blocking
read produced and returns only the messages that are complete. Lines that
do not decode to a {type: str, payload: dict} object are counted and
skipped, never raised, so one bad line cannot wedge the stream.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

log = logging.getLogger(__name__)

Message = Tuple[str, Dict[str, Any]]

# A peer that never sends "\n" must not grow the buffer forever.
MAX_LINE_BYTES = 1 << 20


class FramingError(ValueError):
    """Raised when the inbound stream cannot be framed at all."""


def encode_message(packet_type: str, payload: Mapping[str, Any]) -> bytes:
    body = json.dumps(
        {"type": packet_type, "payload": dict(payload)},
        separators=(",", ":"),
    )
    return body.encode("utf-8") + b"\n"


def decode_line(line: bytes) -> Optional[Message]:
    """Decode one line, or return None if it is not a valid message."""
    try:
        obj = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(obj, dict):
        return None
    packet_type = obj.get("type")
    payload = obj.get("payload", {})
    if not isinstance(packet_type, str) or not isinstance(payload, dict):
        return None
    return packet_type, payload


class LineDecoder:
    """Accumulates raw bytes and yields complete messages."""

    def __init__(self, max_line_bytes: int = MAX_LINE_BYTES) -> None:
        self._buffer = bytearray()
        self._max_line_bytes = max_line_bytes
        self.rejected = 0

    def feed(self, data: bytes) -> List[Message]:
        self._buffer += data
        messages: List[Message] = []

        while True:
            end = self._buffer.find(b"\n")
            if end < 0:
                break
            line = bytes(self._buffer[:end]).strip()
            del self._buffer[: end + 1]
            if not line:
                continue
            msg = decode_line(line)
            if msg is None:
                self.rejected += 1
                log.warning("dropping malformed bridge line: %r", line[:200])
                continue
            messages.append(msg)

        if len(self._buffer) > self._max_line_bytes:
            size = len(self._buffer)
            self._buffer.clear()
            raise FramingError(f"unterminated line of {size} bytes")
        return messages

    @property
    def pending(self) -> int:
        """Bytes held back waiting for a newline."""
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()


__all__ = [
    "FramingError",
    "LineDecoder",
    "MAX_LINE_BYTES",
    "Message",
    "decode_line",
    "encode_message",
]
