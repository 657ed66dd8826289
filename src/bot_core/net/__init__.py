# src/bot_core/net/__init__.py
"""
Transport for bot_core: the PacketClient seam, the bridge client and its
JSON-lines framing.
"""

from __future__ import annotations

from .client import (
    BOT_MODE_BRIDGE,
    BOT_MODE_OFFLINE,
    PacketClient,
    PacketHandler,
    create_packet_client_for_env,
)

__all__ = [
    "BOT_MODE_BRIDGE",
    "BOT_MODE_OFFLINE",
    "PacketClient",
    "PacketHandler",
    "create_packet_client_for_env",
]
