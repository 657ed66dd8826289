# src/bot_core/net/ipc.py
"""
TCP transport to the in-game bridge.

The bridge (a small mod inside the game process) speaks the JSON-lines
framing in framing.py. Outbound "block_dig", "look" and "arm_animation"
messages become protocol packets; world events ("block_change",
"position_update", "update_health", ...) come back the same way.

Threading:
    tick() runs on the agent's tick thread; send_packet() is also called
    from the dig controller's swing / re-aim timer threads. The socket
    stays non-blocking for its whole life and every socket operation
    happens under one lock, so a timer send can never leave tick() stuck
    in a blocking recv. Bytes the kernel will not take right away wait in
    an outbox that the next send or tick flushes.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .client import PacketClient, PacketHandler
from .framing import FramingError, LineDecoder, Message, encode_message

log = logging.getLogger(__name__)

RECV_CHUNK = 65536

# socket.create_connection signature: (address, timeout) -> socket
Connector = Callable[[Tuple[str, int], float], socket.socket]


@dataclass(frozen=True)
class BridgeEndpoint:
    """Where the bridge listens; taken from EnvProfile.connection."""

    host: str
    port: int
    connect_timeout_s: float = 5.0


class IpcClient(PacketClient):
    """
    Non-blocking JSON-lines client for the in-game bridge.

    send_packet() raises ConnectionError when the bridge is gone or the
    outbox overflows; the dig controller treats that as fatal for the
    active session. A dead connection found during tick() is closed and
    logged, and the next send reports it.
    """

    def __init__(
        self,
        env_profile: Any,
        *,
        connector: Optional[Connector] = None,
        max_outbox_bytes: int = 1 << 20,
    ) -> None:
        conn = getattr(env_profile, "connection", None)
        host = getattr(conn, "host", None)
        port = getattr(conn, "port", None)
        if host is None or port is None:
            raise ValueError("EnvProfile.connection must provide host and port")

        self.endpoint = BridgeEndpoint(host=str(host), port=int(port))
        self._connector: Connector = connector or socket.create_connection
        self._max_outbox_bytes = max_outbox_bytes

        self._io_lock = Lock()
        self._sock: Optional[socket.socket] = None
        self._decoder = LineDecoder()
        self._outbox = bytearray()
        self._handlers: Dict[str, PacketHandler] = {}

    # ------------------------------------------------------------------
    # PacketClient protocol
    # ------------------------------------------------------------------

    def connect(self) -> None:
        with self._io_lock:
            if self._sock is not None:
                return
            log.info("IpcClient connecting to %s:%d", self.endpoint.host, self.endpoint.port)
            sock = self._connector(
                (self.endpoint.host, self.endpoint.port),
                self.endpoint.connect_timeout_s,
            )
            sock.setblocking(False)
            self._sock = sock
            self._decoder.reset()
            self._outbox.clear()

    def disconnect(self) -> None:
        with self._io_lock:
            if self._sock is not None:
                log.info("IpcClient disconnecting")
            self._close_locked()

    def tick(self) -> None:
        """Flush pending output, drain available input, dispatch messages."""
        with self._io_lock:
            if self._sock is None:
                return
            messages: List[Message] = []
            try:
                self._flush_locked()
                eof = self._read_locked(messages)
            except (OSError, FramingError) as exc:
                log.warning("IpcClient connection lost: %r", exc)
                self._close_locked()
                eof = False
            if eof:
                log.info("IpcClient bridge closed the connection")
                self._close_locked()

        # Handlers may call send_packet(); run them without the I/O lock.
        for packet_type, payload in messages:
            self._dispatch(packet_type, payload)

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        encoded = encode_message(packet_type, data)

        with self._io_lock:
            if self._sock is None:
                raise ConnectionError("IpcClient is not connected")
            if len(self._outbox) + len(encoded) > self._max_outbox_bytes:
                self._close_locked()
                raise ConnectionError("IpcClient outbox overflow; bridge is not reading")

            self._outbox += encoded
            try:
                self._flush_locked()
            except OSError as exc:
                self._close_locked()
                raise ConnectionError(f"IpcClient send failed: {exc}") from exc

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        self._handlers[packet_type] = handler

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def pending_send_bytes(self) -> int:
        return len(self._outbox)

    # ------------------------------------------------------------------
    # Socket helpers (caller holds _io_lock)
    # ------------------------------------------------------------------

    def _flush_locked(self) -> None:
        while self._outbox:
            try:
                sent = self._sock.send(self._outbox)
            except (BlockingIOError, InterruptedError):
                return
            if sent <= 0:
                return
            del self._outbox[:sent]

    def _read_locked(self, out: List[Message]) -> bool:
        """Append decoded messages to `out`; return True on EOF."""
        while True:
            try:
                chunk = self._sock.recv(RECV_CHUNK)
            except (BlockingIOError, InterruptedError):
                return False
            if not chunk:
                return True
            out.extend(self._decoder.feed(chunk))
            if len(chunk) < RECV_CHUNK:
                return False

    def _close_locked(self) -> None:
        sock, self._sock = self._sock, None
        self._outbox.clear()
        self._decoder.reset()
        if sock is not None:
            try:
                sock.close()
            except OSError:
                log.debug("IpcClient socket close failed", exc_info=True)

    def _dispatch(self, packet_type: str, payload: Dict[str, Any]) -> None:
        handler = self._handlers.get(packet_type)
        if handler is None:
            log.debug("IpcClient no handler for packet_type=%s", packet_type)
            return
        try:
            handler(payload)
        except Exception:
            log.exception("IpcClient handler for %s failed", packet_type)


__all__ = ["BridgeEndpoint", "IpcClient", "RECV_CHUNK"]
