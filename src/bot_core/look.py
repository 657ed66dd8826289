# default viewpoint control: turn toward a point via "look" packets
# src/bot_core/look.py

from __future__ import annotations

import math
from typing import Tuple

from contracts.types import Vec3
from contracts.world import PlayerStateSource
from .net import PacketClient


def yaw_pitch_towards(eye: Vec3, point: Vec3) -> Tuple[float, float]:
    """
    Degrees (yaw, pitch) that face `point` from `eye`.

    Game convention: yaw 0 faces +z and grows clockwise seen from above,
    pitch is positive looking down.
    """
    d = point - eye
    horizontal = math.hypot(d.x, d.z)
    yaw = math.degrees(math.atan2(-d.x, d.z))
    pitch = math.degrees(-math.atan2(d.y, horizontal))
    return yaw, pitch


class PacketLookController:
    """
    OrientationControl that snaps the view with a single "look" packet.

    `force` is forwarded so the bridge can skip smoothing.
    """

    def __init__(self, client: PacketClient, player: PlayerStateSource) -> None:
        self._client = client
        self._player = player

    def look_at(self, point: Vec3, force: bool = False) -> None:
        eye = self._player.player_state().eye_position
        yaw, pitch = yaw_pitch_towards(eye, point)
        self._client.send_packet(
            "look",
            {"yaw": yaw, "pitch": pitch, "force": bool(force)},
        )
