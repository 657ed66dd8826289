# src/bot_core/testing/fakes.py
"""
Test helpers for bot_core.

Provides:
- FakePacketClient: in-memory PacketClient implementation for unit tests.
- FakeClock: manually advanced monotonic clock.
- ManualScheduler: Scheduler whose intervals fire only when advanced.
- FakeWorld: dict-backed WorldModel + PlayerStateSource.
- RecordingOrientation: OrientationControl that records look_at calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from contracts.types import Block, PlayerState, RaycastHit, Vec3
from ..net import PacketClient, PacketHandler
from ..raycast import raycast as cast_ray


@dataclass
class SentPacket:
    """Record of a packet sent through FakePacketClient."""

    packet_type: str
    data: Dict[str, Any]


class FakePacketClient(PacketClient):
    """
    In-memory PacketClient used for unit and integration tests.

    Features:
    - Records all packets sent via send_packet().
    - Allows manual emission of incoming packets to registered handlers.
    - fail_sends: when set, send_packet raises it instead of recording.
    - No real network or IPC.
    """

    def __init__(self) -> None:
        self.connected: bool = False
        self.sent_packets: List[SentPacket] = []
        self.fail_sends: Optional[BaseException] = None
        self._handlers: Dict[str, PacketHandler] = {}

    # ------------------------------------------------------------------
    # PacketClient protocol
    # ------------------------------------------------------------------

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def tick(self) -> None:
        """No-op for FakePacketClient."""
        return

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        if self.fail_sends is not None:
            raise self.fail_sends
        self.sent_packets.append(
            SentPacket(packet_type=packet_type, data=dict(data))
        )

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        self._handlers[packet_type] = handler

    # ------------------------------------------------------------------
    # Test-only helpers
    # ------------------------------------------------------------------

    def emit(self, packet_type: str, payload: Mapping[str, Any]) -> None:
        """
        Manually trigger a packet event for tests.

        This calls the registered handler (if any) with the given payload.
        """
        handler = self._handlers.get(packet_type)
        if handler is not None:
            handler(payload)

    def dig_packets(self) -> List[Dict[str, Any]]:
        """Payloads of every block_dig packet, in send order."""
        return [p.data for p in self.sent_packets if p.packet_type == "block_dig"]

    def dig_statuses(self) -> List[str]:
        return [p["status"] for p in self.dig_packets()]

    def clear(self) -> None:
        self.sent_packets.clear()


class FakeClock:
    """Callable clock returning a manually advanced time in seconds."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _ManualInterval:
    def __init__(self, interval_s: float, fn: Callable[[], None], name: str, due: float) -> None:
        self.interval_s = interval_s
        self.fn = fn
        self.name = name
        self.due = due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Scheduler driven by advance().

    Shares a FakeClock with the code under test so interval timers and
    stall detection see the same time. Callback exceptions are swallowed
    like ThreadingScheduler does.
    """

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.clock = clock or FakeClock()
        self.intervals: List[_ManualInterval] = []

    def call_every(
        self,
        interval_s: float,
        fn: Callable[[], None],
        *,
        name: str = "interval",
    ) -> _ManualInterval:
        interval = _ManualInterval(interval_s, fn, name, self.clock.now + interval_s)
        self.intervals.append(interval)
        return interval

    def active(self, name: Optional[str] = None) -> List[_ManualInterval]:
        return [
            i for i in self.intervals
            if not i.cancelled and (name is None or i.name == name)
        ]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing intervals in due order."""
        end = self.clock.now + seconds
        while True:
            pending = [i for i in self.intervals if not i.cancelled and i.due <= end]
            if not pending:
                break
            nxt = min(pending, key=lambda i: i.due)
            self.clock.now = max(self.clock.now, nxt.due)
            nxt.due += nxt.interval_s
            try:
                nxt.fn()
            except Exception:
                pass
        self.clock.now = end


@dataclass
class FakeWorld:
    """Dict-backed world: set blocks, move the player, raycast for real."""

    player: PlayerState = field(
        default_factory=lambda: PlayerState(position=Vec3(0.5, 64.0, 0.5))
    )
    blocks: Dict[Tuple[int, int, int], Block] = field(default_factory=dict)

    def put(self, block: Block) -> Block:
        self.blocks[block.position.block_key()] = block
        return block

    def block_at(self, position: Vec3) -> Optional[Block]:
        return self.blocks.get(position.block_key())

    def raycast(
        self,
        origin: Vec3,
        direction: Vec3,
        max_distance: float,
    ) -> Optional[RaycastHit]:
        return cast_ray(self.block_at, origin, direction, max_distance)

    def player_state(self) -> PlayerState:
        return self.player


class RecordingOrientation:
    """OrientationControl that records requests and can be told to fail."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Vec3, bool]] = []
        self.fail_with: Optional[BaseException] = None

    def look_at(self, point: Vec3, force: bool = False) -> None:
        self.calls.append((point, force))
        if self.fail_with is not None:
            raise self.fail_with
