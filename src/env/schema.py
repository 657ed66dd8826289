# EnvProfile, ConnectionConfig, DiggingConfig dataclasses
# src/env/schema.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ConnectionConfig:
    """Network endpoint of the IPC bridge / server."""
    host: Optional[str] = None
    port: Optional[int] = None


@dataclass
class DiggingConfig:
    """
    Tunables for the excavation session controller.

    Defaults match the "default" profile in config/digging.yaml so the
    controller is usable without any config files on disk.
    """

    # Maximum eye-to-block-center distance for starting a dig
    reach: float = 4.5

    # Fixed logical tick length used for progress integration
    tick_s: float = 0.05

    # Extra slack on top of 2x the estimate before a stalled attempt restarts
    stall_grace_s: float = 0.15

    # Presentation-only arm swing cadence
    swing_interval_s: float = 0.35

    # Re-aim cadence while orientation tracking is enabled
    look_interval_s: float = 0.15

    # Probe length for visibility raycasts
    raycast_max_distance: float = 5.0

    # Looser reach used by can_dig_block() (measured from position + 1.65)
    can_dig_reach: float = 5.1


@dataclass
class EnvProfile:
    """Resolved environment for one active profile."""
    name: str
    bot_mode: str                 # "forge_mod" or "offline_fake"
    connection: ConnectionConfig
    digging: DiggingConfig = field(default_factory=DiggingConfig)
