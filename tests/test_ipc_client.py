# tests/test_ipc_client.py
"""
Tests for the bridge transport: IpcClient and its JSON-lines framing.

Covers:
- construction validation
- send_packet framing
- tick() dispatch of incoming lines, including partial lines
- send_packet without a connection raises ConnectionError
- non-blocking socket: partial sends, outbox overflow, EOF, reads under the I/O lock
"""

from __future__ import annotations

import json
import socket
import threading
import time
from typing import Any, Dict, List

import pytest

from env.schema import ConnectionConfig, EnvProfile
from bot_core.net.framing import FramingError, LineDecoder, decode_line, encode_message
from bot_core.net.ipc import IpcClient


def _profile(port: int) -> EnvProfile:
    return EnvProfile(
        name="ipc_test",
        bot_mode="forge_mod",
        connection=ConnectionConfig(host="127.0.0.1", port=port),
    )


@pytest.fixture
def bridge():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    yield server
    server.close()


def _pump(client: IpcClient, received: List[Any], expected: int, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while len(received) < expected and time.monotonic() < deadline:
        client.tick()
        time.sleep(0.01)


def test_missing_endpoint_rejected() -> None:
    profile = EnvProfile(name="x", bot_mode="forge_mod", connection=ConnectionConfig())
    with pytest.raises(ValueError):
        IpcClient(profile)


def test_send_without_connection_raises() -> None:
    client = IpcClient(_profile(1))
    with pytest.raises(ConnectionError):
        client.send_packet("block_dig", {"status": "start"})


def test_round_trip_with_bridge(bridge: socket.socket) -> None:
    client = IpcClient(_profile(bridge.getsockname()[1]))
    client.connect()
    conn, _ = bridge.accept()
    conn.settimeout(2.0)

    try:
        client.send_packet("block_dig", {"status": "start", "x": 1, "y": 2, "z": 3, "face": 1})
        line = conn.makefile("rb").readline()
        assert json.loads(line) == {
            "type": "block_dig",
            "payload": {"status": "start", "x": 1, "y": 2, "z": 3, "face": 1},
        }

        received: List[Dict[str, Any]] = []
        client.on_packet("block_change", received.append)

        msg = json.dumps({"type": "block_change", "payload": {"x": 1, "y": 2, "z": 3, "type_id": 0}})
        conn.sendall(msg[:10].encode("utf-8"))
        _pump(client, received, 1, timeout=0.2)
        assert received == []

        conn.sendall(msg[10:].encode("utf-8") + b"\nnot json\n")
        _pump(client, received, 1)
        assert received == [{"x": 1, "y": 2, "z": 3, "type_id": 0}]
    finally:
        client.disconnect()
        conn.close()

    with pytest.raises(ConnectionError):
        client.send_packet("arm_animation", {"hand": "main"})


# ---------------------------------------------------------------------------
# Scripted socket: no network, full control over partial sends and reads
# ---------------------------------------------------------------------------


class _ScriptedSocket:
    """
    Stand-in for a connected socket.

    send_budget: per-call byte limits; 0 means "would block". Empty list
    accepts everything. inbound: chunks returned by recv(); b"" is EOF.
    """

    def __init__(self) -> None:
        self.client: Any = None
        self.blocking_calls: List[bool] = []
        self.recv_under_lock: List[bool] = []
        self.send_budget: List[int] = []
        self.send_error: Any = None
        self.inbound: List[bytes] = []
        self.sent = bytearray()
        self.closed = False

    def setblocking(self, flag: bool) -> None:
        self.blocking_calls.append(flag)

    def send(self, data) -> int:
        if self.send_error is not None:
            raise self.send_error
        n = len(data)
        if self.send_budget:
            n = min(n, self.send_budget.pop(0))
            if n == 0:
                raise BlockingIOError()
        self.sent += bytes(data[:n])
        return n

    def recv(self, size: int) -> bytes:
        self.recv_under_lock.append(self.client._io_lock.locked())
        if not self.inbound:
            raise BlockingIOError()
        return self.inbound.pop(0)

    def close(self) -> None:
        self.closed = True


def _scripted_client(**kwargs: Any):
    sock = _ScriptedSocket()
    client = IpcClient(_profile(25570), connector=lambda address, timeout: sock, **kwargs)
    sock.client = client
    client.connect()
    return client, sock


def test_timer_sends_never_make_tick_block() -> None:
    client, sock = _scripted_client()
    stop = threading.Event()

    def timer_thread() -> None:
        while not stop.is_set():
            client.send_packet("arm_animation", {"hand": "main"})

    worker = threading.Thread(target=timer_thread, daemon=True)
    worker.start()
    try:
        for _ in range(200):
            client.tick()
    finally:
        stop.set()
        worker.join(timeout=2.0)

    assert sock.blocking_calls == [False]
    assert sock.recv_under_lock and all(sock.recv_under_lock)


def test_partial_send_is_flushed_by_tick() -> None:
    client, sock = _scripted_client()
    sock.send_budget = [5, 0]

    client.send_packet("block_dig", {"status": "cancel", "x": 0, "y": 64, "z": 0, "face": 0})
    assert client.pending_send_bytes > 0
    assert len(sock.sent) == 5

    client.tick()

    assert client.pending_send_bytes == 0
    assert json.loads(bytes(sock.sent))["payload"]["status"] == "cancel"


def test_outbox_overflow_closes_connection() -> None:
    client, sock = _scripted_client(max_outbox_bytes=64)
    sock.send_budget = [0] * 10

    client.send_packet("arm_animation", {"hand": "main"})
    with pytest.raises(ConnectionError):
        client.send_packet("arm_animation", {"hand": "main", "pad": "x" * 64})

    assert client.connected is False
    assert sock.closed


def test_send_error_becomes_connection_error() -> None:
    client, sock = _scripted_client()
    boom = BrokenPipeError("peer reset")
    sock.send_error = boom

    with pytest.raises(ConnectionError) as excinfo:
        client.send_packet("look", {"yaw": 0.0, "pitch": 0.0, "force": True})

    assert excinfo.value.__cause__ is boom
    assert client.connected is False


def test_messages_before_eof_are_dispatched() -> None:
    client, sock = _scripted_client()
    seen: List[Dict[str, Any]] = []
    client.on_packet("update_health", seen.append)
    sock.inbound = [b'{"type":"update_health","payload":{"health":0}}\n', b""]

    client.tick()
    assert seen == [{"health": 0}]
    assert client.connected

    client.tick()
    assert client.connected is False


def test_line_decoder_partial_and_malformed_lines() -> None:
    decoder = LineDecoder()

    assert decoder.feed(b'{"type":"a","pay') == []
    assert decoder.pending > 0
    assert decoder.feed(b'load":{"k":1}}\n[1,2]\n{"type":3}\n\n') == [("a", {"k": 1})]
    assert decoder.rejected == 2
    assert decoder.pending == 0


def test_line_decoder_rejects_unterminated_flood() -> None:
    decoder = LineDecoder(max_line_bytes=16)
    with pytest.raises(FramingError):
        decoder.feed(b"x" * 32)
    assert decoder.pending == 0


def test_encode_message_is_one_line() -> None:
    line = encode_message("block_dig", {"status": "finish", "face": 1})
    assert line.endswith(b"\n") and line.count(b"\n") == 1
    assert decode_line(line.strip()) == ("block_dig", {"status": "finish", "face": 1})
