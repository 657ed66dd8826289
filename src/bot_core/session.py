# ExcavationSession: state of the single active dig
# src/bot_core/session.py

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field

from contracts.types import Block, BlockFace, Vec3
from .scheduler import SubscriptionSet


@dataclass(eq=False)
class ExcavationSession:
    """
    One active dig attempt against a single target.

    Owned exclusively by DiggingController; at most one exists at a time.
    Identity comparison (`is`) tells a callback whether its session is
    still the active one.
    """

    target: Block
    face: BlockFace
    aim_point: Vec3
    started_at: float
    track_orientation: bool = False

    # Fraction of the block broken in the current attempt; done at >= 1.
    progress: float = 0.0

    # True once a finish packet went out; keeps resending until the world
    # confirms the block is gone.
    finishing: bool = False

    restarts: int = 0
    created_at: float = 0.0

    future: Future = field(default_factory=Future)
    subscriptions: SubscriptionSet = field(default_factory=SubscriptionSet)

    @property
    def position(self) -> Vec3:
        return self.target.position

    def reset_attempt(self, now: float) -> None:
        """Start a fresh attempt after a forced restart."""
        self.started_at = now
        self.progress = 0.0
        self.finishing = False
        self.restarts += 1
