# collaborator interfaces consumed by bot_core digging
# src/contracts/world.py

from __future__ import annotations

from typing import Optional, Protocol

from .types import Block, PlayerState, RaycastHit, Vec3


class WorldModel(Protocol):
    """Read-only block view of the loaded world.

    Implementations:
    - bot_core.world_tracker.WorldTracker (packet-fed block store)
    - bot_core.testing.fakes.FakeWorld (tests)
    """

    def block_at(self, position: Vec3) -> Optional[Block]:
        """Return the block at an integer position, or None if not loaded."""
        ...

    def raycast(
        self,
        origin: Vec3,
        direction: Vec3,
        max_distance: float,
    ) -> Optional[RaycastHit]:
        """
        Cast a ray through block collision boxes.

        `direction` must be normalized. Returns the first hit within
        `max_distance`, or None.
        """
        ...


class PlayerStateSource(Protocol):
    """Anything that can produce a fresh PlayerState snapshot."""

    def player_state(self) -> PlayerState:
        ...


class OrientationControl(Protocol):
    """Viewpoint control. Requests are best-effort and may raise."""

    def look_at(self, point: Vec3, force: bool = False) -> None:
        """Turn the viewpoint toward `point`; `force` snaps instead of easing."""
        ...
