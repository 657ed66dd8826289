# src/bot_core/net/client.py
"""
Transport seam for bot_core.

Everything above this layer (WorldTracker, DiggingController, the look
controller) talks to the game through PacketClient and never sees wire
bytes. create_packet_client_for_env() picks the implementation from the
EnvProfile's bot_mode.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Protocol

from env.schema import EnvProfile

PacketHandler = Callable[[Mapping[str, Any]], None]

BOT_MODE_BRIDGE = "forge_mod"
BOT_MODE_OFFLINE = "offline_fake"


class PacketClient(Protocol):
    """
    What bot_core needs from a transport.

    Outbound packet types used by this package:
        block_dig      {"status": "start" | "cancel" | "finish", x, y, z, face}
        arm_animation  {"hand": "main"}
        look           {"yaw", "pitch", "force"}

    send_packet() must raise on failure. It may be called from timer
    threads while tick() runs on the main loop.
    """

    def connect(self) -> None:
        ...

    def disconnect(self) -> None:
        ...

    def tick(self) -> None:
        """Deliver whatever inbound events arrived since the last call."""
        ...

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        ...

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        """Route inbound events of `packet_type` to `handler` (one per type)."""
        ...


def create_packet_client_for_env(env: Optional[EnvProfile] = None) -> PacketClient:
    """Build the client for `env` (loaded from config/ when omitted)."""
    if env is None:
        from env.loader import load_environment

        env = load_environment()

    mode = getattr(env, "bot_mode", None)
    if mode == BOT_MODE_BRIDGE:
        from .ipc import IpcClient

        return IpcClient(env)
    if mode == BOT_MODE_OFFLINE:
        from ..testing.fakes import FakePacketClient

        return FakePacketClient()
    raise ValueError(f"Unknown bot_mode in EnvProfile: {mode!r}")
